"""
Salesforce org connection over the Metadata SOAP API and the REST API.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote

import requests
from packaging import version as pkg_version

from .models import ItemDescriptor


logger = logging.getLogger(__name__)

SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"
METADATA_NS = "http://soap.sforce.com/2006/04/metadata"

DEFAULT_TIMEOUT = 120


class SalesforceError(Exception):
    """Raised when the org cannot be reached or rejects a request."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _md(tag: str) -> str:
    return f"{{{METADATA_NS}}}{tag}"


def _child_text(element: ET.Element, tag: str) -> str:
    child = element.find(_md(tag))
    if child is None or child.text is None:
        return ""
    return child.text


def parse_file_properties(element: ET.Element) -> ItemDescriptor:
    """Build an ItemDescriptor from a listMetadata FileProperties element."""
    return ItemDescriptor(
        type=_child_text(element, "type"),
        full_name=_child_text(element, "fullName"),
        last_modified_date=_child_text(element, "lastModifiedDate"),
        created_date=_child_text(element, "createdDate"),
        last_modified_by_name=_child_text(element, "lastModifiedByName"),
        created_by_name=_child_text(element, "createdByName"),
    )


class SalesforceConnection:
    """Minimal client for the calls needed to detect recent changes."""

    def __init__(
        self,
        instance_url: str,
        access_token: str,
        api_version: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the connection.

        Args:
            instance_url: Org instance URL, e.g. https://example.my.salesforce.com
            access_token: OAuth access token or session id
            api_version: API version such as "60.0"; the newest version the
                org supports is used when omitted
            session: requests session to reuse
            timeout: Per-request timeout in seconds
        """
        self.instance_url = instance_url.rstrip("/")
        self.access_token = access_token
        self.session = session or requests.Session()
        self.timeout = timeout
        self.api_version = api_version or self.latest_api_version()

    @classmethod
    def from_org(
        cls, target_org: str, api_version: Optional[str] = None
    ) -> "SalesforceConnection":
        """Connect to an org authorized with the sf CLI."""
        cmd = ["sf", "org", "display", "--target-org", target_org, "--json"]
        logger.debug("Resolving org %s with sf CLI", target_org)
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=DEFAULT_TIMEOUT,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError) as e:
            raise SalesforceError(f"Could not run sf CLI for org {target_org}: {e}") from e

        try:
            payload = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise SalesforceError(
                f"Unexpected sf CLI output for org {target_org}: {result.stderr.strip() or e}"
            ) from e

        if result.returncode != 0 or payload.get("status", 0) != 0:
            message = payload.get("message") or result.stderr.strip() or "unknown error"
            raise SalesforceError(f"Could not resolve org {target_org}: {message}")

        org = payload.get("result", {})
        instance_url = org.get("instanceUrl")
        access_token = org.get("accessToken")
        if not instance_url or not access_token:
            raise SalesforceError(f"Org {target_org} has no active session")

        return cls(
            instance_url=instance_url,
            access_token=access_token,
            api_version=api_version or org.get("apiVersion"),
        )

    @classmethod
    def from_env(cls, api_version: Optional[str] = None) -> "SalesforceConnection":
        """Connect using SF_INSTANCE_URL, SF_ACCESS_TOKEN and SF_API_VERSION."""
        instance_url = os.environ.get("SF_INSTANCE_URL")
        access_token = os.environ.get("SF_ACCESS_TOKEN")
        if not instance_url or not access_token:
            raise SalesforceError("SF_INSTANCE_URL and SF_ACCESS_TOKEN must both be set")
        return cls(
            instance_url=instance_url,
            access_token=access_token,
            api_version=api_version or os.environ.get("SF_API_VERSION"),
        )

    # REST

    def _rest_get(self, path: str, params: Optional[Dict[str, str]] = None):
        url = f"{self.instance_url}{path}"
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }
        try:
            with self.session.get(
                url, headers=headers, params=params, timeout=self.timeout
            ) as response:
                response.raise_for_status()
                return response.json()
        except requests.HTTPError as e:
            raise SalesforceError(
                self._rest_error_message(e.response), e.response.status_code
            ) from e
        except requests.RequestException as e:
            raise SalesforceError(f"Request to {url} failed: {e}") from e

    @staticmethod
    def _rest_error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"HTTP {response.status_code}: {response.text.strip()}"
        if isinstance(body, list) and body:
            body = body[0]
        if isinstance(body, dict):
            message = body.get("message") or body.get("error_description") or body.get("error")
            if message:
                return f"HTTP {response.status_code}: {message}"
        return f"HTTP {response.status_code}"

    def latest_api_version(self) -> str:
        """Return the highest API version the org supports."""
        versions = self._rest_get("/services/data/")
        candidates = []
        for entry in versions or []:
            try:
                candidates.append((pkg_version.parse(entry["version"]), entry["version"]))
            except (KeyError, TypeError, pkg_version.InvalidVersion):
                continue
        if not candidates:
            raise SalesforceError("Org did not report any API versions")
        return max(candidates)[1]

    def identity(self) -> str:
        info = self._rest_get("/services/oauth2/userinfo")
        user_id = info.get("user_id") if isinstance(info, dict) else None
        if not user_id:
            raise SalesforceError("Identity response has no user_id")
        return user_id

    def user_display_name(self, user_id: str) -> str:
        record = self._rest_get(
            f"/services/data/v{self.api_version}/sobjects/User/{quote(user_id, safe='')}",
            params={"fields": "Name"},
        )
        name = record.get("Name") if isinstance(record, dict) else None
        if not name:
            raise SalesforceError(f"User {user_id} has no Name")
        return name

    # Metadata SOAP

    def _envelope(self, operation: str) -> Tuple[ET.Element, ET.Element]:
        envelope = ET.Element(f"{{{SOAP_ENV_NS}}}Envelope")
        header = ET.SubElement(envelope, f"{{{SOAP_ENV_NS}}}Header")
        session_header = ET.SubElement(header, _md("SessionHeader"))
        ET.SubElement(session_header, _md("sessionId")).text = self.access_token
        body = ET.SubElement(envelope, f"{{{SOAP_ENV_NS}}}Body")
        return envelope, ET.SubElement(body, _md(operation))

    def _soap_call(self, operation: str, envelope: ET.Element) -> ET.Element:
        url = f"{self.instance_url}/services/Soap/m/{self.api_version}"
        data = ET.tostring(envelope, encoding="utf-8", xml_declaration=True)
        headers = {
            "Content-Type": "text/xml; charset=UTF-8",
            "SOAPAction": operation,
        }
        try:
            with self.session.post(url, data=data, headers=headers, timeout=self.timeout) as response:
                content = response.content
        except requests.RequestException as e:
            raise SalesforceError(f"{operation} request failed: {e}") from e

        try:
            root = ET.fromstring(content)
        except ET.ParseError:
            root = None

        # Faults arrive with HTTP 500, read them before the status.
        if root is not None:
            fault = root.find(f".//{{{SOAP_ENV_NS}}}Fault")
            if fault is not None:
                fault_string = fault.findtext("faultstring") or "unknown fault"
                raise SalesforceError(f"{operation} failed: {fault_string}", response.status_code)

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise SalesforceError(f"{operation} failed: {e}", response.status_code) from e

        if root is None:
            raise SalesforceError(
                f"{operation} returned an unreadable response (HTTP {response.status_code})",
                response.status_code,
            )
        return root

    def describe_metadata_types(self) -> List[str]:
        envelope, request = self._envelope("describeMetadata")
        ET.SubElement(request, _md("asOfVersion")).text = self.api_version
        root = self._soap_call("describeMetadata", envelope)

        return [
            obj.findtext(_md("xmlName"))
            for obj in root.iter(_md("metadataObjects"))
            if obj.findtext(_md("xmlName"))
        ]

    def list_metadata(self, types: Sequence[str]) -> List[ItemDescriptor]:
        if len(types) > 3:
            raise ValueError(f"listMetadata accepts at most 3 queries, got {len(types)}")

        envelope, request = self._envelope("listMetadata")
        for metadata_type in types:
            query = ET.SubElement(request, _md("queries"))
            ET.SubElement(query, _md("type")).text = metadata_type
        ET.SubElement(request, _md("asOfVersion")).text = self.api_version
        root = self._soap_call("listMetadata", envelope)

        # No result element means nothing of these types exists.
        return [parse_file_properties(el) for el in root.iter(_md("result"))]
