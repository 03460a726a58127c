"""Website support chat: streaming backend and widget client."""
