# wayfarer/context/scripts.py
"""
JavaScript expressions evaluated in the page by the context extractor and
the tool executor.

Every script is a single expression (usually an IIFE) so drivers can
evaluate it and hand back its value. Values must be JSON-compatible.
"""
import json
from typing import Optional

PAGE_IDENTITY_SCRIPT = """
({
  url: window.location.href,
  title: document.title,
  domain: window.location.hostname,
  protocol: window.location.protocol
})
"""

PAGE_TEXT_SCRIPT = "(document.body ? document.body.innerText : '')"

NAVIGATION_STATE_SCRIPT = "({ canGoBack: window.history.length > 1 })"

VIEWPORT_SCRIPT = """
({
  viewport: { width: window.innerWidth, height: window.innerHeight },
  scroll: {
    x: window.scrollX || window.pageXOffset || 0,
    y: window.scrollY || window.pageYOffset || 0
  }
})
"""

_ELEMENTS_TEMPLATE = """
(() => {
  const includeInvisible = %(include_invisible)s;
  const maxPerType = %(max_per_type)d;
  const maxClickable = %(max_clickable)d;

  const classNameOf = (el) =>
    (typeof el.className === 'string' ? el.className : (el.className && el.className.toString())) || '';

  const generateSelector = (el) => {
    if (el.id) return '#' + el.id;
    const classes = classNameOf(el).split(' ').filter(c => c.length > 0);
    if (classes.length > 0) return '.' + classes[0];
    return el.tagName.toLowerCase();
  };

  const isClickable = (el) => {
    const tags = ['button', 'a', 'input', 'select', 'textarea'];
    const types = ['button', 'submit', 'reset'];
    const roles = ['button', 'link', 'tab', 'menuitem'];
    return tags.includes(el.tagName.toLowerCase()) ||
           types.includes(el.type) ||
           roles.includes(el.getAttribute('role')) ||
           el.onclick !== null ||
           el.getAttribute('onclick') !== null ||
           window.getComputedStyle(el).cursor === 'pointer';
  };

  const info = (el) => {
    const rect = el.getBoundingClientRect();
    const style = window.getComputedStyle(el);
    const visible = rect.width > 0 && rect.height > 0 &&
                    style.visibility !== 'hidden' && style.display !== 'none';
    return {
      selector: generateSelector(el),
      tag: el.tagName.toLowerCase(),
      type: el.type || '',
      text: ((el.textContent || '').trim()).substring(0, 100),
      placeholder: el.placeholder || '',
      value: el.value || '',
      name: el.name || '',
      title: el.title || '',
      ariaLabel: el.getAttribute('aria-label') || '',
      role: el.getAttribute('role') || '',
      id: el.id || '',
      className: classNameOf(el),
      isVisible: visible,
      bounds: visible ? { x: rect.x, y: rect.y, width: rect.width, height: rect.height } : null
    };
  };

  const keep = (el) => includeInvisible || el.isVisible;

  const buttons = Array.from(document.querySelectorAll(
      'button, input[type="button"], input[type="submit"], input[type="reset"], [role="button"]'))
    .map(info).filter(keep).slice(0, maxPerType);

  const links = Array.from(document.querySelectorAll('a[href]'))
    .map(el => ({
      selector: generateSelector(el),
      text: ((el.textContent || '').trim()).substring(0, 100),
      href: el.href,
      isVisible: info(el).isVisible
    }))
    .filter(link => link.text.length > 0 && keep(link))
    .slice(0, maxPerType);

  const inputs = Array.from(document.querySelectorAll('input, textarea, select'))
    .map(info).filter(keep).slice(0, maxPerType);

  const formFields = Array.from(document.querySelectorAll('input, textarea, select'))
    .map(el => ({
      selector: generateSelector(el),
      tag: el.tagName.toLowerCase(),
      name: el.name || '',
      type: el.type || el.tagName.toLowerCase(),
      placeholder: el.placeholder || '',
      value: el.value || '',
      required: !!el.required,
      id: el.id || '',
      className: classNameOf(el),
      title: el.title || '',
      label: (el.labels && el.labels[0] ? (el.labels[0].textContent || '').trim() : '') ||
             el.getAttribute('aria-label') ||
             (el.id ? ((document.querySelector('label[for="' + CSS.escape(el.id) + '"]') || {}).textContent || '').trim() : '') || ''
    }))
    .filter(field => includeInvisible || field.type !== 'hidden')
    .slice(0, maxPerType);

  const clickable = Array.from(document.querySelectorAll('body *'))
    .filter(isClickable)
    .map(info)
    .filter(el => keep(el) && el.text.length > 0)
    .slice(0, maxClickable);

  return { buttons, links, inputs, formFields, clickable };
})()
"""


def interactive_elements_script(
    max_elements_per_type: int = 20, include_invisible: bool = False
) -> str:
    """Inventory of buttons, links, inputs, form fields and clickable elements."""
    return _ELEMENTS_TEMPLATE % {
        "include_invisible": "true" if include_invisible else "false",
        "max_per_type": max_elements_per_type,
        "max_clickable": max_elements_per_type + 10,
    }


def scroll_script(direction: str, amount: int) -> str:
    dx, dy = {
        "up": (0, -amount),
        "down": (0, amount),
        "left": (-amount, 0),
        "right": (amount, 0),
    }[direction]
    return (
        f"(() => {{ window.scrollBy({dx}, {dy}); "
        "return { x: window.scrollX, y: window.scrollY }; })()"
    )


def extract_text_script(selector: Optional[str] = None) -> str:
    if not selector:
        return "({ text: document.body ? document.body.innerText : '', count: 1 })"
    sel = json.dumps(selector)
    return (
        "(() => { const els = Array.from(document.querySelectorAll(" + sel + ")); "
        "return { text: els.map(e => (e.innerText || e.textContent || '').trim()).join('\\n'), "
        "count: els.length }; })()"
    )


EXTRACT_LINKS_SCRIPT = """
Array.from(document.querySelectorAll('a[href]')).map(a => ({
  text: ((a.textContent || '').trim()).substring(0, 200),
  href: a.href,
  title: a.title || ''
}))
"""


def element_exists_script(selector: str) -> str:
    return f"(document.querySelector({json.dumps(selector)}) !== null)"
