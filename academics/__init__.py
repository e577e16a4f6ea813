"""academics/ -- Classes and courses, and lecturer assignment to them."""
