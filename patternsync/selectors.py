from __future__ import annotations

# ---------------------------------------------------------------------------
# URL paths below the target's settings root
# ---------------------------------------------------------------------------

PATTERN_LIST_PATH = "settings/security_analysis"
NEW_PATTERN_PATH = "settings/security_analysis/custom_patterns/new"
PUSH_PROTECTION_PATH = "settings/security_analysis/custom_patterns/push_protection"

LOGIN_MARKERS = ("/login", "/session", "/sessions/")

# ---------------------------------------------------------------------------
# Pattern listing
# ---------------------------------------------------------------------------

PATTERN_LIST = ".js-custom-pattern-list"
PATTERN_LIST_BUSY_ATTR = "busy"
PATTERN_LIST_EMPTY = ".js-custom-pattern-list .blankslate"
PATTERN_ROW = '.js-custom-pattern-list li[class="Box-row"]'
PATTERN_ROW_LINK = ".js-navigation-open"
PATTERN_LIST_NEXT = 'button[id="next_cursor_button_udp"]'

# ---------------------------------------------------------------------------
# Pattern form
# ---------------------------------------------------------------------------

DISPLAY_NAME = 'input[name="display_name"]'
SECRET_FORMAT = 'input[name="secret_format"]'
BEFORE_SECRET = 'input[name="before_secret"]'
AFTER_SECRET = 'input[name="after_secret"]'
MORE_OPTIONS_TOGGLE = "div.js-more-options button.js-details-target"
PAGE_HEADING = "h1.Subhead-heading"

ADDITIONAL_RULE = ".js-additional-secret-format"
ADDITIONAL_RULE_REMOVED_CLASS = "has-removed-contents"
ADDITIONAL_RULE_INPUT = 'input[type="text"]'
ADDITIONAL_RULE_MUST_MATCH = 'input[type="radio"][value="must_match"]'
ADDITIONAL_RULE_REMOVE = "button.js-remove-secret-format-button"
ADD_RULE_BUTTON = ".js-add-secret-format-button"


def rule_input(index: int) -> str:
    return f'input[name="post_processing_{index}"]'


def rule_kind_radio(index: int, kind: str) -> str:
    return f'input[name="post_processing_rule_{index}"][value="{kind}"]'


# ---------------------------------------------------------------------------
# Test surface
# ---------------------------------------------------------------------------

TEST_INPUT = "div.CodeMirror-code"
TEST_RESULT = "div.js-test-pattern-matches"
FIELD_ERROR = ".js-custom-pattern-form .error"

# ---------------------------------------------------------------------------
# Dry run
# ---------------------------------------------------------------------------

DRY_RUN_BUTTON = 'button[form="custom-pattern-form"]'
DRY_RUN_STATUS = "form.ajax-pagination-form h5.mt-1"
DRY_RUN_COUNT = '[data-testid="dry-run-count"]'
DRY_RUN_ROW = '[data-testid="dry-run-result-row"]'
DRY_RUN_ROW_MATCH = '[data-testid="secret-match"]'
DRY_RUN_ROW_REPOSITORY = '[data-testid="repository"]'
DRY_RUN_ROW_LINK = "a"
DRY_RUN_NEXT = '[data-testid="next-page"]'

REPO_DIALOG = "#dry-run-repo-selection-dialog"
REPO_DIALOG_ALL = 'input[name="dry_run_repo_selection"][value="all_repos"]'
REPO_DIALOG_SELECTED = 'input[name="dry_run_repo_selection"][value="selected_repos"]'
REPO_DIALOG_SEARCH = "#dry-run-repo-selection-dialog input.js-repo-search"
REPO_DIALOG_OPTION = "#dry-run-repo-selection-dialog .js-repo-option"
REPO_DIALOG_CONFIRM = "#dry-run-repo-selection-dialog button.js-dry-run-confirm"

# ---------------------------------------------------------------------------
# Publish and push protection
# ---------------------------------------------------------------------------

PUBLISH_BUTTON = 'button[name="publish_pattern"]'
FLASH_SUCCESS = ".flash-success"
FLASH_ERROR = ".flash-error"

PUSH_PROTECTION_TOGGLE = 'button[name="push_protection_enabled"]'

PUSH_PROTECTION_FILTER = "input.js-custom-pattern-push-protection-filter"
PUSH_PROTECTION_ROW = "tr.js-custom-pattern-push-protection-row"
PUSH_PROTECTION_ROW_NAME = ".js-custom-pattern-name"
PUSH_PROTECTION_ROW_STATE = ".js-push-protection-state"
PUSH_PROTECTION_ROW_MENU = "button.js-push-protection-menu"
PUSH_PROTECTION_POPOVER = ".js-push-protection-popover"


def push_protection_radio(enabled: bool) -> str:
    value = "enabled" if enabled else "disabled"
    return f'.js-push-protection-popover input[type="radio"][value="{value}"]'


PUSH_PROTECTION_APPLY = ".js-push-protection-popover button.js-push-protection-apply"

# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------

DELETE_BUTTON = "button.js-custom-pattern-delete"
DELETE_DIALOG = "#custom-pattern-delete-dialog"
DELETE_CONFIRM = '#custom-pattern-delete-dialog button[type="submit"]'
