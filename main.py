# main.py

from ocrsearch.bootstrap import Services, build_services
from ocrsearch.config import load_config
from ocrsearch.domain.errors import (
    EmptyKeywordError,
    SearchUnavailableError,
    StoreUnavailableError,
)
from ocrsearch.interface.cli import (
    MenuAction,
    display_error,
    display_goodbye,
    display_ingestion_report,
    display_menu,
    display_records,
    display_search_results,
    display_welcome_banner,
    parse_menu_choice,
    prompt_for_choice,
    prompt_for_keyword,
    prompt_for_path,
)


def main() -> None:
    display_welcome_banner()

    # ── 1. Initialize infrastructure ─────────────────────────────────────────
    config = load_config()
    services = build_services(config)

    # ── 2. Interactive menu loop ──────────────────────────────────────────────
    while True:
        display_menu()
        choice = parse_menu_choice(prompt_for_choice())

        if choice is None:
            display_error("Invalid choice. Please select a valid option (1-4).")
        elif choice is MenuAction.SUBMIT:
            _upload_and_process(services)
        elif choice is MenuAction.LIST:
            _view_all_records(services)
        elif choice is MenuAction.SEARCH:
            _search_records(services)
        elif choice is MenuAction.EXIT:
            break

    display_goodbye()


def _upload_and_process(services: Services) -> None:
    """OCR → store → index one document."""
    path = prompt_for_path()
    report = services.ingestion.submit(path)
    display_ingestion_report(report)


def _view_all_records(services: Services) -> None:
    try:
        records = services.record_store.list_all()
    except StoreUnavailableError as error:
        display_error(str(error))
        return
    display_records(records)


def _search_records(services: Services) -> None:
    keyword = prompt_for_keyword()
    try:
        results = services.query.search(keyword)
    except (EmptyKeywordError, SearchUnavailableError) as error:
        display_error(str(error))
        return
    display_search_results(results)


if __name__ == "__main__":
    main()
