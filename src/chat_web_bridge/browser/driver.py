"""Selenium-backed PageDriver and WebDriver creation."""

import json
import time
import contextlib
from typing import Any, Callable, Dict, Iterable, List, Optional

import psutil
from selenium import webdriver
from selenium.webdriver.common.by import By
from selenium.webdriver.common.keys import Keys
from selenium.webdriver.common.action_chains import ActionChains
from selenium.webdriver.support.ui import WebDriverWait
from selenium.webdriver.support import expected_conditions as EC
from selenium.common.exceptions import (
    ElementClickInterceptedException,
    JavascriptException,
    TimeoutException,
    WebDriverException,
)

import logging
logger = logging.getLogger(__name__)

from ..errors import selector_not_found
from ..config.paths import chromedriver_log_path
from . import scripts
from .page import ElementState, PageDriver, WAIT_LOAD, WAIT_DOMCONTENTLOADED, WAIT_NONE


def build_chrome_arguments(config: dict) -> list[str]:
    """Command-line switches for the automated Chrome instance."""
    args = [
        "--start-maximized",
        "--disable-blink-features=AutomationControlled",
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-gpu",
        "--no-zygote",
        "--disable-software-rasterizer",
        "--disable-dev-shm-usage",
        "--autoplay-policy=no-user-gesture-required",
        "--disable-background-networking",
        "--no-first-run",
        "--no-default-browser-check",
    ]
    if config.get("user_data_dir"):
        args.append(f"--user-data-dir={config['user_data_dir']}")
    if config.get("headless"):
        args.append("--headless=new")
    return args


def create_webdriver(config: dict) -> webdriver.Chrome:
    from selenium.webdriver.chrome.options import Options
    from selenium.webdriver.chrome.service import Service as ChromeService

    options = Options()
    chrome_path = config.get("chrome_path")
    if chrome_path:
        options.binary_location = chrome_path
    for arg in build_chrome_arguments(config):
        options.add_argument(arg)
    options.add_experimental_option("excludeSwitches", ["enable-automation"])
    options.add_experimental_option("useAutomationExtension", False)
    # Return from get() at DOMContentLoaded; stricter policies are waited for explicitly
    options.page_load_strategy = "eager"

    # Handle differing Selenium versions that accept log_output vs. log_path
    log_file = chromedriver_log_path()
    try:
        service = ChromeService(log_output=log_file)  # newer Selenium
    except TypeError:
        service = ChromeService(log_path=log_file)    # older Selenium

    return webdriver.Chrome(service=service, options=options)


def launch_page_driver(config: dict) -> "SeleniumPageDriver":
    """Default session factory: a fresh Chrome process with one page."""
    return SeleniumPageDriver(create_webdriver(config), slow_mo_ms=int(config.get("slow_mo_ms") or 0))


class SeleniumPageDriver(PageDriver):
    """PageDriver over one Selenium Chrome window."""

    def __init__(self, driver: webdriver.Chrome, slow_mo_ms: int = 0):
        self._driver = driver
        self._slow_mo = max(0, slow_mo_ms) / 1000.0
        self._handlers: Dict[str, Callable[..., None]] = {}
        self._network_enabled = False

    @property
    def webdriver(self) -> webdriver.Chrome:
        return self._driver

    @property
    def current_url(self) -> Optional[str]:
        try:
            return self._driver.current_url
        except WebDriverException:
            return None

    def _settle(self) -> None:
        if self._slow_mo:
            time.sleep(self._slow_mo)

    def _cdp(self, cmd: str, params: Optional[dict] = None) -> Any:
        return self._driver.execute_cdp_cmd(cmd, params or {})

    def _enable_network(self) -> None:
        if not self._network_enabled:
            self._cdp("Network.enable")
            self._network_enabled = True

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _wait_ready_state(self, wait_policy: str, timeout: float) -> None:
        if wait_policy == WAIT_NONE:
            return
        wanted = ("complete",) if wait_policy == WAIT_LOAD else ("interactive", "complete")
        WebDriverWait(self._driver, timeout).until(
            lambda d: d.execute_script(scripts.READY_STATE) in wanted
        )

    def navigate(self, url: str, wait_policy: str = WAIT_LOAD, timeout: float = 30.0) -> None:
        self._driver.set_page_load_timeout(timeout)
        logger.debug(f"navigate {url} (wait={wait_policy})")
        self._driver.get(url)
        self._wait_ready_state(wait_policy, timeout)

    def reload(self, wait_policy: str = WAIT_DOMCONTENTLOADED, timeout: float = 30.0) -> None:
        self._driver.set_page_load_timeout(timeout)
        self._driver.refresh()
        self._wait_ready_state(wait_policy, timeout)

    # ------------------------------------------------------------------
    # Waiting and probing
    # ------------------------------------------------------------------

    def _wait_visible_element(self, selector: str, timeout: float):
        try:
            return WebDriverWait(self._driver, timeout).until(
                EC.visibility_of_element_located((By.CSS_SELECTOR, selector))
            )
        except TimeoutException as e:
            raise selector_not_found(selector, details=f"not visible within {timeout:.1f}s") from e

    def wait_for_visible(self, selector: str, timeout: float) -> None:
        self._wait_visible_element(selector, timeout)

    def element_state(self, selector: str) -> ElementState:
        try:
            state = self._driver.execute_script(scripts.ELEMENT_STATE, selector) or {}
        except JavascriptException:
            return ElementState()
        return ElementState(
            present=bool(state.get("present")),
            visible=bool(state.get("visible")),
            enabled=bool(state.get("enabled")),
        )

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------

    def click(self, selector: str, timeout: float = 10.0) -> None:
        el = self._wait_visible_element(selector, timeout)
        try:
            WebDriverWait(self._driver, timeout).until(lambda d: el.is_displayed() and el.is_enabled())
        except TimeoutException as e:
            raise selector_not_found(selector, details="element never became clickable") from e
        try:
            el.click()
        except ElementClickInterceptedException:
            # An overlay is in the way; dispatch the click from script instead
            self._driver.execute_script("arguments[0].click();", el)
        logger.debug(f"clicked {selector}")
        self._settle()

    def hover(self, selector: str, timeout: float = 10.0) -> None:
        el = self._wait_visible_element(selector, timeout)
        ActionChains(self._driver).move_to_element(el).perform()
        self._settle()

    def focus(self, selector: str) -> None:
        el = self._driver.find_element(By.CSS_SELECTOR, selector)
        self._driver.execute_script(scripts.SCROLL_INTO_VIEW, selector)
        self._driver.execute_script("arguments[0].focus();", el)

    def set_input_value(self, selector: str, text: str) -> None:
        self._driver.execute_script(scripts.SET_INPUT_VALUE, selector, text)
        self._settle()

    def press_enter(self, selector: str) -> None:
        el = self._driver.find_element(By.CSS_SELECTOR, selector)
        el.send_keys(Keys.ENTER)
        self._settle()

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def count(self, selector: str) -> int:
        return int(self._driver.execute_script(scripts.COUNT, selector) or 0)

    def read_text(self, selector: str, after: int = 0) -> str:
        return self._driver.execute_script(scripts.READ_LAST_TEXT, selector, after) or ""

    def read_html(self, selector: str, after: int = 0) -> str:
        return self._driver.execute_script(scripts.READ_LAST_HTML, selector, after) or ""

    def evaluate(self, script: str, *args: Any) -> Any:
        return self._driver.execute_script(script, *args)

    # ------------------------------------------------------------------
    # Page-to-host bridge
    # ------------------------------------------------------------------

    def expose_host_function(self, name: str, handler: Callable[..., None]) -> None:
        source = scripts.HOST_FUNCTION_TEMPLATE % json.dumps(name)
        if name not in self._handlers:
            self.add_init_script(source)
        self._handlers[name] = handler
        self._driver.execute_script(source)

    def register_mutation_bridge(self, root_selector: str, callback_name: str, after: int = 0) -> None:
        self._driver.execute_script(scripts.INSTALL_MUTATION_BRIDGE, root_selector, callback_name, after)

    def remove_mutation_bridge(self, callback_name: str) -> None:
        self._driver.execute_script(scripts.REMOVE_MUTATION_BRIDGE, callback_name)

    def pump_host_calls(self) -> int:
        calls = self._driver.execute_script(scripts.DRAIN_HOST_CALLS) or []
        delivered = 0
        for name, args in calls:
            handler = self._handlers.get(name)
            if handler is None:
                logger.debug(f"dropping call to unknown host function {name!r}")
                continue
            handler(*(args or []))
            delivered += 1
        return delivered

    # ------------------------------------------------------------------
    # Session identity and policy
    # ------------------------------------------------------------------

    def add_init_script(self, source: str) -> None:
        self._cdp("Page.addScriptToEvaluateOnNewDocument", {"source": source})

    def set_cookies(self, cookies: List[dict]) -> None:
        if not cookies:
            return
        self._enable_network()
        self._cdp("Network.setCookies", {"cookies": cookies})

    def set_user_agent(self, user_agent: str) -> None:
        self._enable_network()
        self._cdp("Network.setUserAgentOverride", {"userAgent": user_agent})

    def block_urls(self, patterns: Iterable[str]) -> None:
        self._enable_network()
        self._cdp("Network.setBlockedURLs", {"urls": list(patterns)})

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _service_pid(self) -> Optional[int]:
        service = getattr(self._driver, "service", None)
        process = getattr(service, "process", None)
        return getattr(process, "pid", None)

    def is_alive(self) -> bool:
        pid = self._service_pid()
        if pid is not None:
            try:
                proc = psutil.Process(pid)
                if not proc.is_running() or proc.status() == psutil.STATUS_ZOMBIE:
                    return False
            except psutil.NoSuchProcess:
                return False
            except psutil.AccessDenied:
                pass
        try:
            return bool(self._driver.window_handles) and bool(self._driver.current_window_handle)
        except WebDriverException:
            return False

    def close(self) -> None:
        with contextlib.suppress(Exception):
            self._driver.quit()


__all__ = [
    "SeleniumPageDriver",
    "build_chrome_arguments",
    "create_webdriver",
    "launch_page_driver",
]
