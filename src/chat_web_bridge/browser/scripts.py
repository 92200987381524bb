"""JavaScript executed inside the page through ``execute_script``."""

# arguments: selector, value
SET_INPUT_VALUE = r"""
const el = document.querySelector(arguments[0]);
if (!el) throw new Error('input surface not found: ' + arguments[0]);
const val = arguments[1];

const setValue = (node, value) => {
  const proto = node.tagName === 'TEXTAREA'
    ? window.HTMLTextAreaElement.prototype
    : window.HTMLInputElement && window.HTMLInputElement.prototype;
  const desc = proto && Object.getOwnPropertyDescriptor(proto, 'value');
  if (desc && desc.set) desc.set.call(node, value);
  else node.value = value;
};

if (el instanceof HTMLTextAreaElement || el instanceof HTMLInputElement) {
  setValue(el, '');
  el.dispatchEvent(new Event('input', { bubbles: true }));
  setValue(el, val);
  el.dispatchEvent(new Event('input', { bubbles: true }));
  el.setSelectionRange(el.value.length, el.value.length);
} else {
  el.focus();
  el.textContent = val;
  el.dispatchEvent(new InputEvent('input', { bubbles: true, data: val }));
}
return true;
"""

# arguments: selector, after (matches that existed before the submission)
READ_LAST_TEXT = r"""
const nodes = document.querySelectorAll(arguments[0]);
const last = nodes.length > (arguments[1] || 0) ? nodes[nodes.length - 1] : null;
return last ? last.innerText.trim() : '';
"""

# arguments: selector, after
READ_LAST_HTML = r"""
const nodes = document.querySelectorAll(arguments[0]);
const last = nodes.length > (arguments[1] || 0) ? nodes[nodes.length - 1] : null;
return last ? last.outerHTML : '';
"""

# arguments: selector
ELEMENT_STATE = r"""
const el = document.querySelector(arguments[0]);
if (!el) return {present: false, visible: false, enabled: false};
const style = window.getComputedStyle(el);
const rect = el.getBoundingClientRect();
const visible = style.visibility !== 'hidden' && style.display !== 'none'
  && (rect.width > 0 || rect.height > 0);
return {present: true, visible: visible, enabled: !el.disabled};
"""

# arguments: selector
SCROLL_INTO_VIEW = r"""
const el = document.querySelector(arguments[0]);
if (el) el.scrollIntoView({block: 'center'});
return !!el;
"""

# Installed on every new document and once in the current one.
# arguments (current document only): name
HOST_FUNCTION_TEMPLATE = r"""
(function (name) {
  window.__cwbHostCalls = window.__cwbHostCalls || [];
  window[name] = function () {
    window.__cwbHostCalls.push([name, Array.prototype.slice.call(arguments)]);
  };
})(%s);
"""

DRAIN_HOST_CALLS = r"""
const calls = window.__cwbHostCalls || [];
window.__cwbHostCalls = [];
return calls;
"""

# arguments: rootSelector, callbackName, after
INSTALL_MUTATION_BRIDGE = r"""
const rootSelector = arguments[0];
const callbackName = arguments[1];
const after = arguments[2] || 0;
if (typeof window[callbackName] !== 'function') {
  throw new Error('host function not installed: ' + callbackName);
}
window.__cwbObservers = window.__cwbObservers || {};
if (window.__cwbObservers[callbackName]) {
  window.__cwbObservers[callbackName].disconnect();
}
let lastText = null;
const emit = () => {
  const nodes = document.querySelectorAll(rootSelector);
  const last = nodes.length > after ? nodes[nodes.length - 1] : null;
  const text = last ? last.innerText.trim() : '';
  if (text !== lastText) {
    lastText = text;
    window[callbackName](text);
  }
};
const observer = new MutationObserver(emit);
observer.observe(document.body, {childList: true, subtree: true, characterData: true});
window.__cwbObservers[callbackName] = observer;
emit();
return true;
"""

# arguments: callbackName
REMOVE_MUTATION_BRIDGE = r"""
const observers = window.__cwbObservers || {};
const observer = observers[arguments[0]];
if (observer) { observer.disconnect(); delete observers[arguments[0]]; }
return true;
"""

# arguments: selector
COUNT = "return document.querySelectorAll(arguments[0]).length;"

READY_STATE = "return document.readyState"
