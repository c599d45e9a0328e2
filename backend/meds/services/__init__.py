# Services package init
"""
MEDS Backend — Services Layer
===============================

Service Inventory:
    - RecordService:       generic collection CRUD (rules, validation, expand, hooks)
    - auth_service:        password hashing, bearer tokens, current-user dependencies
    - QueueService:        check-in, status changes, today's board
    - EncounterService:    encounter edit lock
    - SettingsService:     the clinic settings record
    - BackupService:       SQLite file backups for the CLI
    - *Hooks:              per-collection side effects run by RecordService
                           (password hashing, stock accounting, timestamps)
"""
