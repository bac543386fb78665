"""Edit scope resolution."""
