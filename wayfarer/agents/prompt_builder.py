# wayfarer/agents/prompt_builder.py
"""
Builds the contextual system message the agent inserts whenever the page
the conversation is looking at changes.
"""
from typing import List

from wayfarer.schemas.context import ContextSnapshot, ElementInfo, FormFieldInfo

BASE_INSTRUCTIONS = """You are an intelligent browser automation agent. You can help users navigate websites, interact with elements, fill forms, and extract information.

CAPABILITIES:
- Navigate to URLs
- Click buttons and links
- Fill form fields
- Scroll pages
- Extract text and links
- Take screenshots
- Wait for elements to appear
- Execute custom JavaScript

SAFETY:
- Never submit forms with sensitive information without explicit confirmation
- Avoid clicking on suspicious links or downloads
- Don't execute arbitrary JavaScript that could be harmful
- Ask for permission before making purchases or financial transactions

Work WITH the current page context, not against it. Be helpful, safe, and explain your actions clearly."""


def _mentions_search(*values) -> bool:
    return any(v and "search" in str(v).lower() for v in values)


def search_inputs(ctx: ContextSnapshot) -> List[FormFieldInfo]:
    return [
        f
        for f in ctx.form_fields
        if f.type == "search"
        or _mentions_search(f.placeholder, f.name, f.selector, f.id, f.class_name, f.title, f.label)
    ]


def search_buttons(ctx: ContextSnapshot) -> List[ElementInfo]:
    return [b for b in ctx.buttons if _mentions_search(b.text, b.selector)]


def analyze_search_capabilities(ctx: ContextSnapshot) -> str:
    inputs = search_inputs(ctx)
    buttons = search_buttons(ctx)
    if not inputs and not buttons:
        return (
            "NO OBVIOUS SEARCH FUNCTIONALITY detected on this page. If the user asks "
            "to search, you may need to navigate to a search engine."
        )

    lines = ["SEARCH CAPABILITIES DETECTED:"]
    if inputs:
        rendered = []
        for f in inputs:
            text = f"{f.type} field"
            if f.placeholder:
                text += f' (placeholder: "{f.placeholder}")'
            rendered.append(f"{text} [{f.selector}]")
        lines.append(f"- Search Inputs: {', '.join(rendered)}")
    if buttons:
        lines.append(
            "- Search Buttons: " + ", ".join(f'"{b.text}" [{b.selector}]' for b in buttons)
        )
    lines.append("-> USE THESE ELEMENTS when the user asks to search for something on this page!")
    return "\n".join(lines)


def _describe_button(b: ElementInfo) -> str:
    text = f'text:"{b.text or b.selector}"'
    if b.type:
        text += f' type:"{b.type}"'
    if b.id:
        text += f' id:"{b.id}"'
    if b.class_name:
        text += f' class:"{b.class_name}"'
    return text


def _describe_field(f: FormFieldInfo) -> str:
    text = f.type
    if f.placeholder:
        text += f' placeholder:"{f.placeholder}"'
    if f.id:
        text += f' id:"{f.id}"'
    if f.class_name:
        text += f' class:"{f.class_name}"'
    return text


def build_contextual_system_prompt(ctx: ContextSnapshot) -> str:
    """Base instructions plus page identity, element inventory and search analysis."""
    buttons = ", ".join(_describe_button(b) for b in ctx.buttons) or "none"
    links = ", ".join(f'text:"{l.text}", href:"{l.href}"' for l in ctx.links) or "none"
    fields = ", ".join(_describe_field(f) for f in ctx.form_fields) or "none"

    back = "Can go back" if ctx.can_go_back else "Cannot go back"
    if ctx.can_go_forward is None:
        forward = "forward navigation unknown"
    else:
        forward = "can go forward" if ctx.can_go_forward else "cannot go forward"

    sections = [
        BASE_INSTRUCTIONS,
        "CURRENT PAGE CONTEXT:\n"
        f"URL: {ctx.current_url}\n"
        f"Title: {ctx.page_title}\n"
        f"Domain: {ctx.domain}",
        f"IMPORTANT: You are currently on {ctx.domain}. The user expects you to work "
        "within THIS page unless they explicitly ask to go somewhere else.",
        "Available Elements:\n"
        f"- Buttons: {len(ctx.buttons)} ({buttons})\n"
        f"- Links: {len(ctx.links)} ({links})\n"
        f"- Form Fields: {len(ctx.form_fields)} ({fields})",
        analyze_search_capabilities(ctx),
        f"Navigation: {back}, {forward}",
        "CONTEXT-AWARE INSTRUCTIONS:\n"
        "- If the user asks to search for something, look for search functionality on THIS page first\n"
        "- Use the available elements listed above to understand what actions are possible on this page\n"
        "- Only navigate away if the user explicitly requests it or if no suitable functionality exists on the current page\n"
        f"- The user is currently browsing {ctx.page_title} on {ctx.current_url}; work within this context",
    ]
    if ctx.last_action_error:
        sections.append(f"LAST ACTION ERROR: {ctx.last_action_error}")
    return "\n\n".join(sections)
