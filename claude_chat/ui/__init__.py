"""NiceGUI interface and the client half of the chat.

Responsibilities:
    - Chat page with streaming display, model and feature toggles
    - Conversation log persisted to per-browser storage
    - Consuming the relay's normalized event stream
    - File attachments and optional web search

The page itself holds no protocol logic; it drives ChatSession.
"""
