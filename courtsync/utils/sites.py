from typing import Dict

from courtsync.services.row_normalizer import FieldMapping
from courtsync.utils.site_adapter import SiteConfig

SECURIMAGE_FIELD = "siwp_captcha_value_0"

SITES: Dict[str, SiteConfig] = {
    "delhi_high_court_orders": SiteConfig(
        name="delhi_high_court_orders",
        court="Delhi High Court",
        base_url="https://hcservices.ecourts.gov.in/hcservices/",
        form_path="main.php",
        submit_path="cases_qry/index_qry.php?action_code=showRecords",
        captcha_image_path="securimage/securimage_show.php",
        captcha_field="captcha",
        form_fields={"state_code": "26", "dist_code": "1", "court_code": "1"},
        param_fields={"from_date": "from_date", "to_date": "to_date", "diary_number": "case_no"},
        error_selector="#errSpan",
        table_selector="#showList1, table.tbl-result",
        columns=["serial_number", "diary_number", "parties", "judgment_date", "order_link"],
        mapping=FieldMapping(
            diary_number="diary_number",
            case_details="diary_number",
            parties="parties",
            judgment_date="judgment_date",
            order_link="order_link",
            default_order_type="JUDGEMENT",
        ),
        city="New Delhi",
    ),
    "supreme_court_judgments": SiteConfig(
        name="supreme_court_judgments",
        court="Supreme Court",
        base_url="https://www.sci.gov.in/",
        form_path="judgements-judgement-date/",
        submit_path="wp-admin/admin-ajax.php?action=get_judgements_judgement_date",
        captcha_image_path="?_siwp_captcha&id=0",
        captcha_field=SECURIMAGE_FIELD,
        param_fields={"from_date": "from_date", "to_date": "to_date"},
        error_selector=".error-message, .alert-danger",
        label_attribute="data-th",
        link_selector='a[href$=".pdf"], a[href$=".PDF"]',
        mapping=FieldMapping(
            primary="Serial Number",
            diary_number="Diary Number",
            case_details="Case Number",
            parties="Petitioner / Respondent",
            advocates="Petitioner/Respondent Advocate",
            bench="Bench",
            judgment_by="Judgment By",
            order_link="Judgment",
            default_order_type="JUDGEMENT",
        ),
        answer_length=[1, 3],
        numeric_answer=True,
        city="New Delhi",
    ),
    "new_delhi_district_orders": SiteConfig(
        name="new_delhi_district_orders",
        court="District Court",
        base_url="https://newdelhi.dcourts.gov.in/",
        form_path="court-orders-search-by-order-date/",
        submit_path="wp-admin/admin-ajax.php?action=get_order_date",
        captcha_image_path="?_siwp_captcha&id=0",
        captcha_field=SECURIMAGE_FIELD,
        form_fields={"est_code": "DLND01"},
        param_fields={"from_date": "from_date", "to_date": "to_date", "establishment_code": "est_code"},
        error_selector=".notfound, .alert-danger",
        columns=["serial_number", "case_details", "parties", "judgment_date", "order_link"],
        mapping=FieldMapping(
            case_details="case_details",
            parties="parties",
            judgment_date="judgment_date",
            order_link="order_link",
        ),
        captcha_keywords=["invalid", "incorrect", "captcha", "security code"],
        answer_length=[4, 8],
        district="New Delhi",
    ),
}


def get_site(name: str) -> SiteConfig:
    try:
        return SITES[name]
    except KeyError:
        raise ValueError(f"Unknown site {name!r}; known sites: {', '.join(sorted(SITES))}")
