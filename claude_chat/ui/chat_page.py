"""NiceGUI chat interface with SSE streaming support."""

import os

from nicegui import app, events, ui

from claude_chat.errors import ValidationError
from claude_chat.models.schemas import Message
from claude_chat.relay.config import MODEL_IDS
from claude_chat.ui.attachments import read_attachment
from claude_chat.ui.config import get_client_config
from claude_chat.ui.session import ChatSession

MODEL_LABELS = {"sonnet-4.5": "Sonnet 4.5", "opus-4.1": "Opus 4.1"}

ACCEPTED_FILES = "image/*,.pdf,.doc,.docx,.txt,.md,.csv,.html"

# Plain Enter sends; Shift+Enter falls through to the textarea as a newline.
SEND_KEY_EVENT = "keydown.enter.exact.prevent"

CUSTOM_CSS = """
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600&display=swap"
      rel="stylesheet">
<style>
    * { font-family: 'Inter', sans-serif; }

    body { background: #f9fafb; min-height: 100vh; }

    .app-container {
        background: white;
        border-radius: 12px;
        box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1);
        overflow: hidden;
    }

    .message-user {
        background: #9333ea;
        color: white;
        border-radius: 16px;
    }

    .message-assistant {
        background: white;
        color: #111827;
        border: 1px solid #e5e7eb;
        border-radius: 16px;
    }

    .message-assistant pre { margin: 0.5rem 0; }
    .message-assistant code { font-family: 'Menlo', 'Monaco', monospace; }

    .input-box {
        background: #f9fafb;
        border: 1px solid #d1d5db;
        border-radius: 12px;
        transition: border-color 0.2s;
    }
    .input-box:focus-within { border-color: #a855f7; }
</style>
"""


def _image_source(image) -> str:
    return image.preview or f"data:image/{image.format};base64,{image.data}"


@ui.page("/")
def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)
    session = ChatSession(get_client_config(), storage=app.storage.user)

    messages_container: ui.column
    attachments_row: ui.row
    input_field: ui.textarea
    send_btn: ui.button

    def render_message(msg: Message) -> None:
        is_user = msg.role == "user"
        align = "justify-end" if is_user else "justify-start"
        bubble = "message-user" if is_user else "message-assistant"

        with ui.row().classes(f"w-full {align}"):
            with ui.column().classes(f"max-w-[80%] px-4 py-3 gap-2 {bubble}"):
                if msg.images:
                    with ui.row().classes("gap-2"):
                        for image in msg.images:
                            ui.image(_image_source(image)).classes(
                                "w-32 h-32 rounded-lg"
                            ).props("fit=cover")
                if msg.documents:
                    with ui.row().classes("gap-2"):
                        for doc in msg.documents:
                            ui.chip(doc.name, icon="description").props("outline")
                if is_user:
                    ui.label(msg.text).classes("whitespace-pre-wrap text-sm")
                else:
                    ui.markdown(msg.text).classes("text-sm leading-relaxed")

    def refresh_messages() -> None:
        messages_container.clear()
        with messages_container:
            if not len(session.log):
                with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                    ui.icon("auto_awesome").classes("text-5xl text-purple-600")
                    ui.label("Welcome to Claude Chat").classes("text-2xl font-semibold")
                    ui.label(
                        "Start a conversation with Claude. You can attach images, "
                        "upload documents, and enable web search."
                    ).classes("text-gray-600")
            else:
                for msg in session.log.messages:
                    render_message(msg)

    def refresh_attachments() -> None:
        attachments_row.clear()
        with attachments_row:
            for idx, image in enumerate(session.attachments.images):
                with ui.element("div").classes("relative"):
                    ui.image(_image_source(image)).classes("w-20 h-20 rounded-lg")
                    ui.button(
                        icon="close",
                        on_click=lambda i=idx: remove_attachment("images", i),
                    ).props("round dense size=xs color=red").classes(
                        "absolute -top-2 -right-2"
                    )
            for idx, doc in enumerate(session.attachments.documents):
                ui.chip(
                    doc.name,
                    icon="description",
                    removable=True,
                    on_value_change=lambda e, i=idx: (
                        None if e.value else remove_attachment("documents", i)
                    ),
                )
        update_send_button()

    def remove_attachment(kind: str, index: int) -> None:
        session.attachments.remove(kind, index)
        refresh_attachments()

    def update_send_button() -> None:
        has_input = bool((input_field.value or "").strip())
        if session.is_streaming or (not has_input and session.attachments.is_empty):
            send_btn.disable()
        else:
            send_btn.enable()

    async def handle_upload(e: events.UploadEventArguments) -> None:
        data = await e.file.read()
        try:
            attachment = read_attachment(e.file.name, e.file.content_type, data)
        except ValidationError as err:
            ui.notify(str(err), type="warning")
            return
        if attachment is not None:
            session.attachments.add(attachment)
            refresh_attachments()

    async def send_message() -> None:
        text = input_field.value or ""
        if session.is_streaming:
            return

        response_md: ui.markdown | None = None
        spinner_row: ui.row | None = None

        def on_start() -> None:
            nonlocal spinner_row
            input_field.value = ""
            refresh_attachments()
            refresh_messages()
            with messages_container, ui.row().classes("w-full justify-start") as row:
                ui.spinner(size="lg", color="purple")
            spinner_row = row

        def on_text(_fragment: str) -> None:
            nonlocal response_md
            if response_md is None:
                if spinner_row is not None:
                    spinner_row.delete()
                with (
                    messages_container,
                    ui.row().classes("w-full justify-start"),
                    ui.element("div").classes("max-w-[80%] px-4 py-3 message-assistant"),
                ):
                    response_md = ui.markdown("").classes("text-sm leading-relaxed")
            if session.log.in_progress is not None:
                response_md.set_content(session.log.in_progress.text)

        try:
            ok = await session.submit(text, on_text=on_text, on_start=on_start)
        except ValidationError:
            return

        refresh_messages()
        update_send_button()
        if not ok:
            ui.notify("The response could not be completed", type="negative")

    async def clear_chat() -> None:
        with ui.dialog() as dialog, ui.card():
            ui.label("Clear all messages?")
            with ui.row():
                ui.button("Cancel", on_click=lambda: dialog.submit(False)).props("flat")
                ui.button("Clear", on_click=lambda: dialog.submit(True)).props("color=red")
        if await dialog:
            session.clear()
            refresh_messages()
            refresh_attachments()

    # === UI Layout ===
    with (
        ui.element("div").classes("w-full min-h-screen p-4 md:p-8"),
        ui.column().classes("w-full max-w-3xl mx-auto app-container").style(
            "height: calc(100vh - 4rem)"
        ),
    ):
        # Header
        with ui.row().classes("w-full px-5 py-3 items-center justify-between border-b"):
            with ui.row().classes("items-center gap-3"):
                ui.icon("auto_awesome").classes("text-purple-600 text-2xl")
                ui.label("Claude Chat").classes("text-xl font-semibold")
            with ui.row().classes("items-center gap-3"):
                ui.toggle(
                    {name: MODEL_LABELS.get(name, name) for name in MODEL_IDS},
                ).bind_value(session, "model").props("no-caps rounded unelevated")
                ui.switch("Extended").bind_value(session, "extended_thinking").tooltip(
                    "Extended Thinking"
                )
                search_switch = ui.switch("Search").bind_value(session, "web_search")
                if not session.search.enabled:
                    search_switch.tooltip("Set TAVILY_API_KEY to enable web search")
                ui.button("Clear", on_click=clear_chat).props("flat no-caps")

        # Messages
        with (
            ui.scroll_area().classes("flex-grow w-full bg-gray-50"),
            ui.column().classes("w-full p-5"),
        ):
            messages_container = ui.column().classes("w-full gap-6")

        # Input
        with ui.column().classes("w-full p-4 gap-2 bg-white border-t"):
            attachments_row = ui.row().classes("gap-2")
            with ui.row().classes("w-full gap-2 items-end"):
                ui.upload(
                    on_upload=handle_upload,
                    multiple=True,
                    auto_upload=True,
                ).props(f'accept="{ACCEPTED_FILES}" flat dense').classes("w-40")
                with ui.element("div").classes("flex-grow input-box px-3 py-2"):
                    input_field = (
                        ui.textarea(
                            placeholder="Message Claude...",
                            on_change=lambda: update_send_button(),
                        )
                        .props("autogrow borderless dense rows=1")
                        .classes("w-full")
                        .on(SEND_KEY_EVENT, send_message)
                    )
                send_btn = ui.button(icon="send", on_click=send_message).props(
                    "round unelevated color=purple"
                )
            ui.label("Claude can make mistakes. Check important info.").classes(
                "text-xs text-gray-500 self-center"
            )

    refresh_messages()
    refresh_attachments()


def main() -> None:
    """Serve the chat page on its own, talking to a relay at API_BASE_URL."""
    ui.run(
        title="Claude Chat",
        port=int(os.getenv("UI_PORT", "8080")),
        reload=False,
        storage_secret=get_client_config().storage_secret,
    )


if __name__ == "__main__":
    main()
