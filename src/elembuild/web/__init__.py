"""HTTP serving layer for built element trees."""
