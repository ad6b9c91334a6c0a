"""
Taskboard API: Routes Package
==============================

Route Inventory:
    - auth.py:     /auth/register, /auth/login, /auth/refresh, /auth/logout,
                   /auth/forgot-password, /auth/reset-password
    - boards.py:   /boards CRUD, accessBoard, updateBoardAdmins,
                   updateBoardUsers, leaveBoard
    - notes.py:    /notes CRUD, updateNoteUsers
    - users.py:    /users list/detail, PATCH /users, POST /users/uploads
    - uploads.py:  GET /uploads/{name}
    - health.py:   GET /health

Routes stay thin: read the request, call a service, shape the response.
"""
