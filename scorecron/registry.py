"""Finding the source repository of a package on npm, PyPI or RubyGems."""

from __future__ import annotations

from typing import Any

import requests

_TIMEOUT_SECONDS = 10
_NPM_SEARCH_URL = "https://registry.npmjs.org/-/v1/search?text={}&size=1"
_PYPI_SEARCH_URL = "https://pypi.org/pypi/{}/json"
_RUBYGEMS_SEARCH_URL = "https://rubygems.org/api/v1/gems/{}.json"


class RegistryError(Exception):
    """The package's repository could not be looked up."""


def _get_json(url: str, what: str) -> Any:
    try:
        response = requests.get(url, timeout=_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        raise RegistryError(f"failed to get {what} json: {exc}") from exc
    with response:
        try:
            return response.json()
        except ValueError as exc:
            raise RegistryError(f"failed to parse {what} json: {exc}") from exc


def _lookup(document: Any, path: tuple[str, ...], what: str) -> str:
    """Follow ``path`` through nested objects; missing or null parts give ''."""
    node = document
    for key in path:
        if node is None:
            return ""
        if not isinstance(node, dict):
            raise RegistryError(f"failed to parse {what} json: unexpected value {node!r}")
        node = node.get(key)
    if node is None:
        return ""
    if not isinstance(node, str):
        raise RegistryError(f"failed to parse {what} json: unexpected value {node!r}")
    return node


def fetch_repo_from_npm(package_name: str) -> str:
    """Return the repository URL of the npm package."""
    document = _get_json(_NPM_SEARCH_URL.format(package_name), "npm package")
    if document is not None and not isinstance(document, dict):
        raise RegistryError("failed to parse npm package json: expected an object")
    objects = (document or {}).get("objects")
    if objects is not None and not isinstance(objects, list):
        raise RegistryError("failed to parse npm package json: objects is not a list")
    if not objects:
        raise RegistryError(f"could not find source repo for npm package: {package_name}")
    return _lookup(objects[0], ("package", "links", "repository"), "npm package")


def fetch_repo_from_pypi(package_name: str) -> str:
    """Return the source repository URL of the PyPI package."""
    document = _get_json(_PYPI_SEARCH_URL.format(package_name), "pypi package")
    source = _lookup(document, ("info", "project_urls", "Source"), "pypi package")
    if not source:
        raise RegistryError(f"could not find source repo for pypi package: {package_name}")
    return source


def fetch_repo_from_rubygems(package_name: str) -> str:
    """Return the source code URL of the ruby gem."""
    document = _get_json(_RUBYGEMS_SEARCH_URL.format(package_name), "ruby gem")
    source = _lookup(document, ("source_code_uri",), "ruby gem")
    if not source:
        raise RegistryError(f"could not find source repo for ruby gem: {package_name}")
    return source