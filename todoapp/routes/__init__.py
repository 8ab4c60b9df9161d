# Routes package init
"""
Todo Service — API Routes Package
==================================

Route Inventory:
    - todos.py:   GET    /todos         (list)
                  POST   /todos         (create, redirect)
                  PATCH  /todos/{uid}   (update, redirect)
                  DELETE /todos/{uid}   (delete, redirect)
    - health.py:  GET    /health        (service health check)

Routes stay thin: decode the payload, call the dispatcher, render its result.
"""
