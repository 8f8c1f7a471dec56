"""
OrderDesk Backend: API Routes Package
=====================================

Route Inventory:
    - users.py:        /users, /users/{id}
    - orders.py:       /orders, /orders/{id}, /orders/user/{userId}
    - health.py:       /health, /health/ready, /health/live
    - metrics.py:      /metrics (Prometheus text)
    - error_codes.py:  /error-codes

Routes stay thin: parse the request, call one service method, wrap the
result in the envelope. Errors propagate to the handlers in main.py.
"""
