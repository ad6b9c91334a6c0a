"""
Taskboard API: Services Layer
==============================

What:  Business rules between the routes (HTTP) and the database.
How:   Services take an AsyncSession per call, flush their changes and leave
       the commit to the request-scoped session.

Service Inventory:
    - security.py:       password hashing, reset tokens, JWT issue/verify
    - authorization.py:  board role predicates and the admin guard
    - auth_service.py:   register, login, refresh, password reset
    - user_service.py:   user lookups and profile updates
    - board_service.py:  boards and their admin/member lists
    - note_service.py:   notes and their assignees
    - upload_service.py: profile pictures (local disk or S3)
    - mail_service.py:   outbound mail (SMTP or log-only)
"""
