"""Wire and storage constants shared by the coordinator and its hosts."""

from __future__ import annotations

# Persisted snapshot format. Any stored snapshot with a different version
# is discarded on restore.
STATE_VERSION = 1
STATE_KEY = "symposium.chatState"

# Inbound (surface -> coordinator)
NEW_TAB = "new-tab"
PROMPT = "prompt"
SAVE_STATE = "save-state"
REQUEST_SAVED_STATE = "request-saved-state"

# Outbound (coordinator -> surface)
RESPONSE_CHUNK = "response-chunk"
RESPONSE_COMPLETE = "response-complete"
RESPONSE_ERROR = "response-error"
RESTORE_STATE = "restore-state"
