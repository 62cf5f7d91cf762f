from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Optional

from playwright.sync_api import Browser, Page, sync_playwright

from ..config import PortalConfig
from ..models import ResultRecord, ResultRequest
from ..util.debug_bundle import FAILURE_ARTIFACT_PREFIX
from .extract import extract_result
from .selectors import PortalSelectors


logger = logging.getLogger(__name__)


class _LookupSteps:
    """
    Step numbering for a single `fetch_result()` call.

    One client serves every request thread, so nothing per-lookup may live on the client.
    """

    def __init__(self, *, verbose: bool) -> None:
        self.level = logging.INFO if verbose else logging.DEBUG
        self.count = 0

    def __call__(self, page: Optional[Page], name: str) -> None:
        self.count += 1
        if not logger.isEnabledFor(self.level):
            return
        url = getattr(page, "url", "") if page is not None else ""
        logger.log(self.level, "Step %02d %s (url=%s)", self.count, name, url)


class ResultPortalClient:
    """
    Result portal automation (one isolated browser per lookup).

    `fetch_result()` walks the portal form and returns whatever record the result page
    renders. A record with an empty candidate name is a normal outcome (no match), not an
    error; every other problem (launch, navigation, missing selector, evaluation) is raised
    to the caller unchanged. The browser is closed on every path.
    """

    def __init__(
        self,
        *,
        config: Optional[PortalConfig] = None,
        selectors: Optional[PortalSelectors] = None,
        playwright_factory: Callable = sync_playwright,
    ) -> None:
        self.config = config or PortalConfig()
        self.selectors = selectors or PortalSelectors()
        self._playwright_factory = playwright_factory

    def fetch_result(self, request: ResultRequest) -> ResultRecord:
        cfg = self.config
        step = _LookupSteps(verbose=cfg.log_steps)

        try:
            with self._playwright_factory() as p:
                step(None, "launching")
                browser = self._launch(p)
                try:
                    page = browser.new_page()
                    page.set_default_timeout(cfg.selector_timeout_ms)
                    page.set_default_navigation_timeout(cfg.navigation_timeout_ms)
                    try:
                        self._submit_form(page, request, step)
                        step(page, "extracting")
                        record = extract_result(page, self.selectors)
                    except Exception:
                        if cfg.save_debug_on_failure:
                            self._save_debug(page, name_prefix=f"{FAILURE_ARTIFACT_PREFIX}{request.roll_number}")
                        raise
                finally:
                    step(None, "closing")
                    self._close_browser(browser)
        except Exception:
            step(None, "failed")
            logger.warning(
                "Portal lookup failed (course=%s, year=%s)",
                request.course,
                request.year,
            )
            raise

        step(None, "done")
        logger.info(
            "Portal lookup done (course=%s, year=%s, found=%s)",
            request.course,
            request.year,
            record.found,
        )
        return record

    def _launch(self, p) -> Browser:
        cfg = self.config
        launch_kwargs = {
            "headless": cfg.headless,
            "args": list(cfg.browser_args),
            "timeout": cfg.launch_timeout_ms,
            "slow_mo": cfg.slow_mo_ms,
        }
        # Prefer Playwright's bundled Chromium, but fall back to a system-installed browser if the
        # container/cache doesn't have Playwright browsers available.
        try:
            return p.chromium.launch(**launch_kwargs)
        except Exception as e:
            msg = str(e)
            if "Executable doesn't exist" not in msg:
                raise

            logger.warning(
                "Playwright Chromium executable missing; falling back to system browser channel. (%s)",
                msg,
            )

            # Try Chrome first, then Edge.
            try:
                return p.chromium.launch(channel="chrome", **launch_kwargs)
            except Exception:
                return p.chromium.launch(channel="msedge", **launch_kwargs)

    def _submit_form(self, page: Page, request: ResultRequest, step: _LookupSteps) -> None:
        cfg = self.config
        sel = self.selectors

        step(page, "navigating")
        page.goto(cfg.url, wait_until="domcontentloaded", timeout=cfg.navigation_timeout_ms)

        step(page, "filling_form")
        page.select_option(sel.course_select, request.course)
        page.select_option(sel.year_select, request.year)
        page.wait_for_selector(sel.roll_number_input, timeout=cfg.selector_timeout_ms)
        page.fill(sel.roll_number_input, request.roll_number)

        # The click must be issued inside the navigation wait; both have to succeed.
        step(page, "submitting")
        with page.expect_navigation(wait_until="networkidle", timeout=cfg.navigation_timeout_ms):
            page.click(sel.submit_button)
            step(page, "waiting_for_navigation")

    def _close_browser(self, browser: Browser) -> None:
        try:
            browser.close()
        except Exception:
            # Never let teardown replace the lookup's own outcome.
            logger.warning("Failed to close browser session.", exc_info=True)

    def _save_debug(self, page: Page, *, name_prefix: str) -> None:
        try:
            out_dir = Path(self.config.debug_dir)
            out_dir.mkdir(parents=True, exist_ok=True)
            safe = re.sub(r"[^a-zA-Z0-9_-]+", "_", name_prefix).strip("_")[:60] or "failed"
            page.screenshot(path=str(out_dir / f"{safe}.png"), full_page=True)
            (out_dir / f"{safe}.html").write_text(page.content(), encoding="utf-8")
            # Also save the rendered body text so extraction can be debugged offline.
            try:
                (out_dir / f"{safe}.txt").write_text(page.inner_text("body"), encoding="utf-8")
            except Exception:
                pass
        except Exception:
            logger.debug("Failed to save debug artifacts.", exc_info=True)
