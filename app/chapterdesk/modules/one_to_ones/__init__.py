"""One-to-one meetings between two members, listed as requested or received."""
