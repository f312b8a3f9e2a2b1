"""Room directory: users, rooms and membership."""
