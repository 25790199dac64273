"""Session scheduling and reminder backend for photography studios."""
