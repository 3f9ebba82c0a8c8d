# wayfarer/tests/agents/test_prompt_builder.py
"""
Tests for the contextual system prompt and search-capability analysis.
"""
from wayfarer.agents.prompt_builder import (
    BASE_INSTRUCTIONS,
    analyze_search_capabilities,
    build_contextual_system_prompt,
)
from wayfarer.schemas.context import ContextSnapshot, ElementInfo, FormFieldInfo


def _page(**kwargs):
    kwargs.setdefault("current_url", "https://shop.example/")
    kwargs.setdefault("page_title", "Shop")
    kwargs.setdefault("domain", "shop.example")
    return ContextSnapshot(**kwargs)


def test_no_search_functionality():
    text = analyze_search_capabilities(_page())
    assert text.startswith("NO OBVIOUS SEARCH FUNCTIONALITY")


def test_search_input_detected_by_placeholder():
    ctx = _page(
        form_fields=[
            FormFieldInfo(tag_name="input", type="text", placeholder="Search products", selector="#q")
        ]
    )
    text = analyze_search_capabilities(ctx)
    assert text.startswith("SEARCH CAPABILITIES DETECTED:")
    assert '- Search Inputs: text field (placeholder: "Search products") [#q]' in text


def test_search_input_detected_by_type_and_class():
    by_type = _page(form_fields=[FormFieldInfo(tag_name="input", type="search", selector="input")])
    by_class = _page(
        form_fields=[FormFieldInfo(tag_name="input", class_name="site-search", selector=".site-search")]
    )
    assert "Search Inputs" in analyze_search_capabilities(by_type)
    assert "Search Inputs" in analyze_search_capabilities(by_class)


def test_search_button_detected():
    ctx = _page(buttons=[ElementInfo(tag_name="button", selector="#go", text="Search")])
    assert '- Search Buttons: "Search" [#go]' in analyze_search_capabilities(ctx)


def test_prompt_sections():
    ctx = _page(
        buttons=[ElementInfo(tag_name="button", selector="#buy", text="Buy", type="submit", id="buy")],
        can_go_back=True,
        last_action_error="Element not found: #cart",
    )
    prompt = build_contextual_system_prompt(ctx)

    assert prompt.startswith(BASE_INSTRUCTIONS)
    assert "URL: https://shop.example/\nTitle: Shop\nDomain: shop.example" in prompt
    assert "You are currently on shop.example." in prompt
    assert '- Buttons: 1 (text:"Buy" type:"submit" id:"buy")' in prompt
    assert "- Links: 0 (none)" in prompt
    assert "Navigation: Can go back, forward navigation unknown" in prompt
    assert prompt.endswith("LAST ACTION ERROR: Element not found: #cart")
