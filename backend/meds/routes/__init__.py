# Routes package init
"""
MEDS Backend — API Routes Package
===================================

Route Inventory:
    - health.py:      GET  /health
    - auth.py:        POST /api/collections/users/auth-with-password
                      POST /api/collections/users/auth-refresh
    - records.py:     GET/POST/PATCH/DELETE /api/collections/{collection}/records[/{id}]
    - queue.py:       POST /api/queue/check-in, POST /api/queue/{id}/status,
                      GET  /api/queue/today
    - encounters.py:  POST /api/encounters/{id}/claim, POST /api/encounters/{id}/release
    - settings.py:    GET/PATCH /api/settings/current
    - frontend.py:    static build of the web UI, mounted at /

Routes stay thin: pull data off the request, call a service, return the result.
"""
