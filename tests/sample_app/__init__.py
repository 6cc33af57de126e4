"""Small application used as injection target in tests."""
