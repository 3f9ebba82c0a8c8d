# wayfarer/agents/page_analysis.py
"""
One-shot page helpers that ask a backend about the text of a page without
involving the tool loop: answer a question, summarize, suggest steps.

Each helper is a single request with the catalog withheld, so nothing here
can act on the page.
"""
from wayfarer.providers.base import BackendProvider
from wayfarer.schemas.messages import Message
from wayfarer.utils.logger import setup_logger

logger = setup_logger(__name__)

ANALYZE_LIMIT = 10000
SUMMARY_LIMIT = 12000
SUGGESTION_LIMIT = 8000

ANALYZE_SYSTEM = (
    "You are an AI assistant helping users analyze web pages. You will be given "
    "the content of a web page and a question about it. Answer from the page "
    "content and say so clearly when the page does not cover the question."
)
SUMMARY_SYSTEM = (
    "You are an expert at summarizing web content. Create concise, informative "
    "summaries that capture the key points and main ideas."
)
SUGGESTION_SYSTEM = (
    "You are an expert in web automation. Given page content and a user goal, "
    "suggest specific steps to accomplish it. Be practical and name the "
    "elements to interact with."
)


def clip(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


async def ask_once(provider: BackendProvider, system: str, prompt: str) -> str:
    """Send one system + user pair with tools withheld and return the reply text."""
    response = await provider.send(
        [Message.system(system), Message.user(prompt)], tools_enabled=False
    )
    if response.tool_calls:
        logger.info(f"Ignoring {len(response.tool_calls)} tool call(s) in a one-shot reply")
    return response.text


async def analyze_page(provider: BackendProvider, page_text: str, query: str) -> str:
    prompt = (
        f"Web page content:\n{clip(page_text, ANALYZE_LIMIT)}\n\n"
        f"User query: {query}\n\n"
        "Please analyze the page content and answer the user's query."
    )
    return await ask_once(provider, ANALYZE_SYSTEM, prompt)


async def summarize_content(provider: BackendProvider, page_text: str) -> str:
    prompt = (
        f"Please summarize this content:\n\n{clip(page_text, SUMMARY_LIMIT)}\n\n"
        "Create a clear, concise summary highlighting the main points."
    )
    return await ask_once(provider, SUMMARY_SYSTEM, prompt)


async def suggest_automation(provider: BackendProvider, page_text: str, goal: str) -> str:
    prompt = (
        f"Page content:\n{clip(page_text, SUGGESTION_LIMIT)}\n\n"
        f"User goal: {goal}\n\n"
        "Suggest specific automation steps:"
    )
    return await ask_once(provider, SUGGESTION_SYSTEM, prompt)
