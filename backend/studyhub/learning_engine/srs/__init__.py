"""SM-2 scheduling and due-card selection."""
