"""
OrderDesk Backend: Services Layer
=================================

Service Inventory:
    - UserService / OrderService: business rules per module
    - UserServiceAdapter / OrderServiceAdapter: the same services exposed as
      registry capabilities, each call on its own session
    - pagination: page/limit normalization shared by list operations

Services are built per request (see dependencies.py) around a repository
bound to the request session; they hold no state between requests.
"""
