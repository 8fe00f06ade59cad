"""Activity domain: key lifecycle signals and their recorded revisions."""
