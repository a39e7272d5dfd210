"""Feature modules - slash commands, component handlers and forms."""
