# Store package: query building over the ORM models.
