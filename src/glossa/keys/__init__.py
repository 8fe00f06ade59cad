"""Keys domain for localization keys, their translations, tags and screenshots."""

# Note: Imports are not done at module level to avoid circular dependencies.
# Import directly from submodules when needed:
#   from glossa.keys.models import Key, Translation
#   from glossa.keys.service import KeyService
