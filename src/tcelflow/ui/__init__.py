"""Toast notifications and queued confirmation dialogs."""
