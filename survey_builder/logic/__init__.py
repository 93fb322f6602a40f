"""Domain logic: accounts, creator data, survey conversion and results."""
