"""Built-in starter content for new workspaces."""

from datetime import date

from app.models import (
    EditorSettings,
    Folder,
    InspirationItem,
    InspirationType,
    Note,
    Template,
    now_ms,
)

WELCOME_CONTENT = (
    "<h1>Welcome!</h1><p>This is your new <b>vintage</b> writing space.</p>"
    "<p>Try using the <i>AI Assistant</i> to help you write.</p>"
    "<blockquote>\"Fill your paper with the breathings of your heart.\" - Wordsworth</blockquote>"
)


def default_folders() -> list[Folder]:
    return [
        Folder(id="f1", name="Drafts", color="#78716c"),
        Folder(id="f2", name="Ideas", color="#fbbf24"),
        Folder(id="f3", name="Blog Posts", color="#3b82f6"),
    ]


def default_notes() -> list[Note]:
    return [
        Note(
            id="n1",
            folder_id="f1",
            title="Welcome to Beyond Words",
            content=WELCOME_CONTENT,
            updated_at=now_ms(),
        ),
    ]


def default_inspiration() -> list[InspirationItem]:
    created = now_ms()
    return [
        InspirationItem(
            id="i1",
            type=InspirationType.TEXT,
            content="Write drunk, edit sober.",
            title="Hemingway Advice",
            created_at=created,
            x=100,
            y=100,
        ),
        InspirationItem(
            id="i2",
            type=InspirationType.VIDEO,
            content="https://www.youtube.com/watch?v=Sagx9oJ0x64",
            title="Vintage Typewriter ASMR",
            created_at=created,
            x=400,
            y=150,
        ),
    ]


def default_editor_settings() -> EditorSettings:
    return EditorSettings()


def templates() -> list[Template]:
    return [
        Template(
            id="script",
            name="Video Script",
            description="A-Roll, B-Roll, and Thumbnail planning",
            default_title="New Video Script",
            content=(
                "<p><strong>Logline:</strong> One sentence summary of the video...</p><hr/>"
                "<h2>Script & Visuals</h2>"
                "<table><thead><tr><th>Section</th><th>Visual (A-Roll)</th>"
                "<th>B-Roll / Overlay</th><th>Audio / Script</th></tr></thead>"
                "<tbody>"
                "<tr><td><strong>Intro</strong></td><td>Talking head, energetic</td>"
                "<td>Montage of results</td><td>\"In this video, I'm going to show you...\"</td></tr>"
                "<tr><td><strong>Point 1</strong></td><td>Talking head</td>"
                "<td>Screen recording of X</td><td>\"First, let's talk about...\"</td></tr>"
                "<tr><td><strong>Outro</strong></td><td>Talking head</td>"
                "<td>Subscribe animation</td><td>\"Thanks for watching...\"</td></tr>"
                "</tbody></table>"
                "<h2>Thumbnail Ideas</h2>"
                "<ul><li>Idea 1: Close up with shocked face</li>"
                "<li>Idea 2: Split screen comparison</li></ul>"
            ),
        ),
        Template(
            id="novel",
            name="Novel Chapter",
            description="Standard manuscript format",
            default_title="Chapter 1",
            content=(
                "<p style=\"text-align: center; font-style: italic;\">(Scene setting...)</p>"
                "<p>It was a dark and stormy night.</p>"
                "<p>\"Dialogue starts here,\" she said.</p>"
            ),
        ),
        Template(
            id="meeting",
            name="Meeting Notes",
            description="Agenda, Attendees, Action Items",
            default_title="Meeting: [Topic]",
            content=(
                "<h2>Details</h2>"
                f"<p><strong>Date:</strong> {date.today().isoformat()}</p>"
                "<p><strong>Attendees:</strong> </p>"
                "<h2>Agenda</h2><ul><li>Topic 1</li><li>Topic 2</li></ul>"
                "<h2>Notes</h2><p>Discussion points...</p>"
                "<h2>Action Items</h2><ul><li>[ ] Task 1</li><li>[ ] Task 2</li></ul>"
            ),
        ),
    ]


def find_template(template_id: str | None) -> Template | None:
    if not template_id:
        return None
    return next((t for t in templates() if t.id == template_id), None)
