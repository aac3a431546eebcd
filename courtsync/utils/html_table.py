from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from loguru import logger

from courtsync.utils.text import clean_text


def _cell_value(cell, link_selector: str, base_url: Optional[str]) -> Any:
    links = []
    for link in cell.select(link_selector):
        href = link.get("href", "").strip()
        if not href or href.startswith("javascript:") or href == "#":
            continue
        links.append({
            "text": clean_text(link.get_text(" ")),
            "href": urljoin(base_url, href) if base_url else href,
        })
    if not links:
        return clean_text(cell.get_text(" "))
    return links[0] if len(links) == 1 else links


def parse_table_rows(
    html: str,
    table_selector: str = "table",
    columns: Optional[List[Optional[str]]] = None,
    label_attribute: Optional[str] = None,
    link_selector: str = "a[href]",
    base_url: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Extract the data rows of an HTML results table as dicts.

    Cells are keyed either by position (`columns`, None entries are skipped)
    or by an attribute carried on every cell such as `data-th`. A cell with
    links becomes a {"text", "href"} dict, or a list of them when it holds
    several documents. Rows made only of header cells are skipped.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    tables = soup.select(table_selector)
    if not tables:
        logger.warning(f"No table matching {table_selector!r} found in the response")
        return []

    rows = []
    for table in tables:
        for tr in table.find_all("tr"):
            cells = tr.find_all("td")
            if not cells:
                continue

            row = {}
            for index, cell in enumerate(cells):
                if label_attribute:
                    key = clean_text(cell.get(label_attribute))
                elif columns is not None:
                    key = columns[index] if index < len(columns) else None
                else:
                    key = str(index)
                if not key:
                    continue
                row[key] = _cell_value(cell, link_selector, base_url)

            if any(value for value in row.values()):
                rows.append(row)

    logger.info(f"Extracted {len(rows)} rows from {len(tables)} table(s)")
    return rows


def find_hidden_inputs(html: str) -> Dict[str, str]:
    """Hidden form inputs (__VIEWSTATE, CSRF tokens) to carry into the next POST"""
    soup = BeautifulSoup(html or "", "html.parser")
    return {
        field["name"]: field.get("value", "")
        for field in soup.find_all("input", {"type": "hidden"})
        if field.get("name")
    }
