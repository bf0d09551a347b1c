"""Persistence coordinator: owns the task/person collections and keeps both backends in sync."""
