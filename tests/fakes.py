"""Minimal stand-ins for the Playwright objects the sync code touches."""

from playwright.sync_api import TimeoutError as PlaywrightTimeoutError


class FakeLocator:
    """Zero-or-one element. Children are looked up by role / 'placeholder' / 'css'."""

    def __init__(self, present=True, visible=True, text="", checked=False, attrs=None,
                 html="", value="", children=None, page=None, descendants=None):
        self.present = present
        self.visible = visible
        self.text = text
        self.checked = checked
        self.attrs = attrs or {}
        self.html = html
        self.value = value
        self.children = children or {}
        self.page = page
        self.descendants = list(descendants or [])
        self.clicks = 0
        self.fills = []
        self.typed = []
        self.pressed = []

    # narrowing
    @property
    def first(self):
        return self

    def filter(self, has_text=None, has_not=None, **kwargs):
        if has_text is not None and not has_text.search(self.text):
            return missing()
        if has_not is not None and any(m in self.descendants for m in _members(has_not)):
            return missing()
        return self

    def or_(self, other):
        return FakeUnion(_members(self) + _members(other))

    def get_by_role(self, role, name=None, **kwargs):
        return self.children.get(role, missing())

    def get_by_placeholder(self, pattern, **kwargs):
        return self.children.get("placeholder", missing())

    def locator(self, selector):
        return self.children.get("css", missing())

    # state
    def count(self):
        return 1 if self.present else 0

    def wait_for(self, state="visible", timeout=None):
        if not (self.present and self.visible):
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded")

    def is_visible(self):
        return self.present and self.visible

    def is_checked(self):
        return self.checked

    def get_attribute(self, name):
        return self.attrs.get(name)

    def inner_html(self):
        return self.html

    def input_value(self):
        return self.value

    # actions
    def click(self):
        self.clicks += 1
        self.checked = not self.checked

    def fill(self, value):
        self.fills.append(value)
        self.value = value

    def press_sequentially(self, value):
        self.typed.append(value)
        self.value += value

    def press(self, key):
        self.pressed.append(key)


class FakeGroup:
    """Several elements behind one locator (e.g. all buttons of a card)."""

    def __init__(self, items):
        self.items = list(items)

    @property
    def first(self):
        return self.items[0] if self.items else missing()

    def count(self):
        return len(self.items)

    def nth(self, i):
        return self.items[i]


class FakeUnion:
    """Result of or_(); only used as a has_not= argument."""

    def __init__(self, members):
        self.members = members

    def or_(self, other):
        return FakeUnion(self.members + _members(other))


def _members(loc):
    if isinstance(loc, FakeUnion):
        return list(loc.members)
    return [loc] if loc.present else []


def missing():
    return FakeLocator(present=False, visible=False)


class FakePage(FakeLocator):
    def __init__(self, children=None, url="about:blank", goto_results=None):
        super().__init__(children=children)
        self.url = url
        self.goto_results = dict(goto_results or {})
        self.visited = []
        self.screenshots = []
        self.waits = []

    def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        result = self.goto_results.get(url, url)
        if isinstance(result, Exception):
            raise result
        self.url = result

    def wait_for_load_state(self, state=None, timeout=None):
        pass

    def wait_for_timeout(self, ms):
        self.waits.append(ms)

    def screenshot(self, path=None, full_page=False):
        self.screenshots.append(path)
