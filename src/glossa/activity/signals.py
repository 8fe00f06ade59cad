"""Blinker signals emitted by key services inside their open transaction.

Receivers get ``session``, ``ctx`` and ``key_ids`` keyword arguments and may add
rows to the session; those rows commit together with the change itself.
"""

from blinker import signal

key_created = signal("key-created")
key_edited = signal("key-edited")
key_complex_edited = signal("key-complex-edited")
keys_deleted = signal("keys-deleted")
keys_imported = signal("keys-imported")
