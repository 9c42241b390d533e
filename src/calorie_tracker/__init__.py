"""Photo-based calorie tracker with a configurable day reset."""
