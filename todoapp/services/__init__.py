# Services package init
"""
Todo Service — Services Layer
==============================

Service Inventory:
    - todo_api.api:  request dispatcher (method + path + payload → ApiResponse)
    - TodoService:   the list/create/update/delete ORM calls it dispatches to
"""
