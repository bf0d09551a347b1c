"""
Core domain.

Components:
- models.py: Task / Person / TaskStatus and their wire (JSON) form
- errors.py: error taxonomy shared by storage and import/export
- ports.py: Protocols the coordinator and import/export depend on
- state.py: AppState wiring passed to the console layer
"""
