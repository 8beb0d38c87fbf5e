"""
Report decoder for DMARC aggregate reports.

Turns the bytes of one report stream into a RawDocument. Only the parts of
the aggregate report schema needed for the summary are read:

<feedback>
   <report_metadata>
      <org_name/>, <email/>, <report_id/>, <date_range><begin/><end/></date_range>
   </report_metadata>
   <policy_published>
      <domain/>, <adkim/>, <aspf/>, <p/>, <sp/>, <pct/>
   </policy_published>
   <record>
      <row>
         <source_ip/>, <count/>
         <policy_evaluated><disposition/><dkim/><spf/></policy_evaluated>
      </row>
      <identifiers><header_from/></identifiers>
   </record>
   ...
</feedback>

Element namespaces (DMARC 2.0 reports declare one) are ignored.
"""

import xml.etree.ElementTree as ET
from typing import Optional

from .exceptions import DecodeError
from .models import PolicyPublished, RawDocument, RawRecord, parse_epoch, parse_integer

__all__ = ["decode_report", "parse_epoch"]


def _strip_namespaces(root: ET.Element) -> None:
    for element in root.iter():
        if isinstance(element.tag, str) and element.tag.startswith("{"):
            element.tag = element.tag.split("}", 1)[1]


def _text(parent: ET.Element, path: str) -> Optional[str]:
    node = parent.find(path)
    if node is None:
        return None
    return (node.text or "").strip()


def _token(parent: ET.Element, path: str) -> str:
    # Unstripped: policy tokens must match exactly
    node = parent.find(path)
    if node is None:
        return ""
    return node.text or ""


def _required(parent: ET.Element, path: str, source: str) -> str:
    value = _text(parent, path)
    if value is None:
        raise DecodeError(
            "missing_field",
            f"{source}: missing required element <{path}>",
            {"source": source, "field": path},
        )
    return value


def _count(value: str, source: str, index: int) -> int:
    count = parse_integer(value)
    if count is None:
        raise DecodeError(
            "invalid_count",
            f"{source}: record {index} has non-integer count {value!r}",
            {"source": source, "record": index, "count": value},
        )
    if count < 0:
        raise DecodeError(
            "invalid_count",
            f"{source}: record {index} has negative count {count}",
            {"source": source, "record": index, "count": value},
        )
    return count


def _record(element: ET.Element, source: str, index: int) -> RawRecord:
    return RawRecord(
        header_from=_required(element, "identifiers/header_from", source),
        count=_count(_required(element, "row/count", source), source, index),
        disposition=_token(element, "row/policy_evaluated/disposition"),
        dkim=_token(element, "row/policy_evaluated/dkim"),
        spf=_token(element, "row/policy_evaluated/spf"),
        source_ip=_text(element, "row/source_ip") or "",
    )


def decode_report(data: bytes, source: str = "<stream>") -> RawDocument:
    """
    Decode one aggregate report.

    Args:
        data: Raw XML bytes of the report
        source: Stream name used in error messages

    Returns:
        The decoded RawDocument

    Raises:
        DecodeError: On malformed or truncated markup, or a missing required field
    """
    if not data or not data.strip():
        raise DecodeError("empty_stream", f"{source}: empty report stream", {"source": source})
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise DecodeError(
            "malformed_xml",
            f"{source}: {e}",
            {"source": source, "position": getattr(e, "position", None)},
        ) from e

    _strip_namespaces(root)

    policy = PolicyPublished(
        domain=_required(root, "policy_published/domain", source),
        adkim=_text(root, "policy_published/adkim") or "",
        aspf=_text(root, "policy_published/aspf") or "",
        p=_text(root, "policy_published/p") or "",
        sp=_text(root, "policy_published/sp") or "",
        pct=parse_integer(_text(root, "policy_published/pct")),
    )

    records = tuple(
        _record(element, source, index)
        for index, element in enumerate(root.findall("record"))
    )

    return RawDocument(
        org_name=_required(root, "report_metadata/org_name", source),
        email=_text(root, "report_metadata/email") or "",
        report_id=_text(root, "report_metadata/report_id") or "",
        date_range_begin=_required(root, "report_metadata/date_range/begin", source),
        date_range_end=_required(root, "report_metadata/date_range/end", source),
        policy=policy,
        records=records,
    )
