"""
DYMO Connect web service client for printing shelf price labels.
The service runs on the shop PC and accepts label XML over HTTPS (self-signed).
"""
import os
import re
import logging
import requests
from typing import Optional, List, Dict, Any
from xml.sax.saxutils import escape
from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_URLS = [
    'https://127.0.0.1:41951/DYMO/DLS/Printing',
    'https://localhost:41951/DYMO/DLS/Printing',
]
REQUEST_TIMEOUT = 3  # seconds, the service is local


class DymoServiceUnavailable(Exception):
    pass


def get_service_urls() -> List[str]:
    urls = getattr(settings, 'DYMO_SERVICE_URLS', None)
    if not urls:
        env = os.getenv('DYMO_SERVICE_URLS', '')
        urls = [u.strip() for u in env.split(',') if u.strip()] or DEFAULT_SERVICE_URLS
    return list(urls)


def get_default_printer() -> str:
    return getattr(settings, 'DYMO_PRINTER_NAME', os.getenv('DYMO_PRINTER_NAME', 'DYMO LabelWriter 450'))


LABEL_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<DieCutLabel Version="8.0" Units="twips">
  <PaperOrientation>Landscape</PaperOrientation>
  <Id>Small30332</Id>
  <IsOutlined>false</IsOutlined>
  <PaperName>30332 1 in x 1 in</PaperName>
  <DrawCommands>
    <RoundRectangle X="0" Y="0" Width="1440" Height="1440" Rx="180" Ry="180"/>
  </DrawCommands>
  <ObjectInfo>
    <TextObject>
      <Name>ProductName</Name>
      <ForeColor Alpha="255" Red="0" Green="0" Blue="0"/>
      <BackColor Alpha="0" Red="255" Green="255" Blue="255"/>
      <HorizontalAlignment>Center</HorizontalAlignment>
      <VerticalAlignment>Top</VerticalAlignment>
      <TextFitMode>ShrinkToFit</TextFitMode>
      <StyledText>
        <Element>
          <String xml:space="preserve">{name}</String>
          <Attributes>
            <Font Family="Arial" Size="7" Bold="False" Italic="False" Underline="False" Strikeout="False"/>
          </Attributes>
        </Element>
      </StyledText>
    </TextObject>
    <Bounds X="100" Y="100" Width="1240" Height="600"/>
  </ObjectInfo>
  <ObjectInfo>
    <TextObject>
      <Name>Price</Name>
      <ForeColor Alpha="255" Red="0" Green="0" Blue="0"/>
      <BackColor Alpha="0" Red="255" Green="255" Blue="255"/>
      <HorizontalAlignment>Center</HorizontalAlignment>
      <VerticalAlignment>Middle</VerticalAlignment>
      <TextFitMode>ShrinkToFit</TextFitMode>
      <StyledText>
        <Element>
          <String xml:space="preserve">{price}</String>
          <Attributes>
            <Font Family="Arial" Size="14" Bold="True" Italic="False" Underline="False" Strikeout="False"/>
          </Attributes>
        </Element>
      </StyledText>
    </TextObject>
    <Bounds X="100" Y="700" Width="1240" Height="640"/>
  </ObjectInfo>
</DieCutLabel>"""


def build_label_xml(item_name: str, price: str) -> str:
    """1" x 1" (30332) shelf label with item name and price"""
    quote_entities = {'"': '&quot;', "'": '&apos;'}
    return LABEL_TEMPLATE.format(
        name=escape(item_name, quote_entities),
        price=escape(price, quote_entities),
    )


def get_printers(endpoint: str) -> Optional[List[str]]:
    """Printer names reported by a service endpoint, or None if it is unreachable"""
    try:
        response = requests.get(f"{endpoint}/GetPrinters", timeout=REQUEST_TIMEOUT, verify=False)
    except requests.exceptions.RequestException as e:
        logger.debug(f"DYMO endpoint {endpoint} unreachable: {str(e)}")
        return None
    if response.status_code != 200:
        logger.debug(f"DYMO endpoint {endpoint} returned status {response.status_code}")
        return None
    return re.findall(r'<Name>([^<]+)</Name>', response.text)


def find_service() -> Dict[str, Any]:
    """First reachable endpoint, preferring one that has printers attached"""
    fallback = None
    for endpoint in get_service_urls():
        printers = get_printers(endpoint)
        if printers is None:
            continue
        if printers:
            return {'endpoint': endpoint, 'printers': printers}
        fallback = fallback or {'endpoint': endpoint, 'printers': []}
    if fallback:
        return fallback
    raise DymoServiceUnavailable(
        'Cannot connect to DYMO Web Service. Make sure DYMO Connect is running with Web Service enabled.'
    )


def print_label(endpoint: str, printer_name: str, label_xml: str) -> bool:
    try:
        response = requests.post(
            f"{endpoint}/PrintLabel",
            data={'printerName': printer_name, 'labelXml': label_xml, 'labelSetXml': ''},
            timeout=REQUEST_TIMEOUT * 5,
            verify=False,
        )
    except requests.exceptions.RequestException as e:
        logger.warning(f"DYMO print request failed: {str(e)}")
        return False
    if response.status_code != 200:
        logger.warning(f"DYMO print failed with status {response.status_code}: {response.text[:200]}")
        return False
    return True


def print_labels(labels: List[Dict[str, str]], copies: int = 1, printer_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Print shelf labels through the local DYMO service.

    Args:
        labels: [{'name': ..., 'price': '$4.95'}]
        copies: copies per label
        printer_name: defaults to the first printer the service reports

    Raises:
        DymoServiceUnavailable when no endpoint answers
    """
    service = find_service()
    printer = printer_name or (service['printers'][0] if service['printers'] else get_default_printer())

    printed, failed, errors = 0, 0, []
    for label in labels:
        label_xml = build_label_xml(label['name'], label['price'])
        for _ in range(max(1, copies)):
            if print_label(service['endpoint'], printer, label_xml):
                printed += 1
            else:
                failed += 1
                errors.append(f"Failed to print {label['name']}")

    logger.info(f"DYMO printed {printed} labels on {printer} ({failed} failed)")
    return {'printed': printed, 'failed': failed, 'errors': errors, 'printer': printer}
