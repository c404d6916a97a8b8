"""Activities: the individual steps of a packaging pass."""
