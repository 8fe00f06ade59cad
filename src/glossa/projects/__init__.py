"""Projects domain: projects, languages, users, permissions and API keys."""
