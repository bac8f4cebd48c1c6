"""Tests for the dpkg status and apt extended_states parsers."""

from layerscan.core.dpkg_db import (
    parse_dpkg_status,
    parse_extended_states,
    set_auto_installed,
)
from layerscan.core.models import PackageRecord


def test_single_record_fields():
    text = "Package: foo\nVersion: 1.0\nProvides: bar, baz (>= 2)\nDepends: a | b, c\n"
    records = parse_dpkg_status(text)

    assert len(records) == 1
    pkg = records[0]
    assert pkg.name == "foo"
    assert pkg.version == "1.0"
    assert pkg.provides == ["bar", "baz"]
    assert pkg.deps == {"a", "b", "c"}


def test_status_database(dpkg_status_text):
    records = parse_dpkg_status(dpkg_status_text)

    assert [r.name for r in records] == ["libc6", "apt", "gpgv"]
    libc6, apt, gpgv = records
    assert libc6.source == "glibc"
    assert libc6.deps == {"libgcc-s1"}
    assert apt.source is None
    assert apt.deps == {"libc6", "adduser", "gpgv", "gpgv2", "libapt-pkg6.0"}
    assert apt.provides == ["apt-transport-https"]
    assert gpgv.source == "gnupg2"
    assert gpgv.version == "2.2.40-1.1"


def test_version_is_kept_verbatim():
    records = parse_dpkg_status("Package: foo\nVersion: 1:2.3~rc1-4+deb12u1\n")

    assert records[0].version == "1:2.3~rc1-4+deb12u1"


def test_continuation_and_unknown_lines_are_ignored():
    text = (
        "Package: foo\n"
        "Description: a tool\n"
        " Depends: not-a-dep\n"
        "Conffiles:\n"
        " /etc/foo.conf abc123\n"
        "X-Custom: yes\n"
    )
    records = parse_dpkg_status(text)

    assert records[0].deps == set()


def test_fields_before_first_package_are_ignored():
    records = parse_dpkg_status("Version: 9\nDepends: ghost\n\nPackage: foo\n")

    assert len(records) == 1
    assert records[0].version is None
    assert records[0].deps == set()


def test_splitting_at_record_starts_gives_same_records(dpkg_status_text):
    whole = parse_dpkg_status(dpkg_status_text)
    head, *rest = dpkg_status_text.split("\nPackage: ")
    stanzas = [head] + ["Package: " + s for s in rest]
    pieces = [r for stanza in stanzas for r in parse_dpkg_status(stanza)]

    assert [r.to_dict() for r in pieces] == [r.to_dict() for r in whole]


def test_empty_text_yields_no_records():
    assert parse_dpkg_status("") == []


def test_extended_states(extended_states_text):
    assert parse_extended_states(extended_states_text) == {"gpgv"}


def test_extended_states_ignores_bad_values():
    text = (
        "Auto-Installed: 1\n"
        "Package: a\n"
        "Auto-Installed: yes\n"
        "Package: b\n"
        "Auto-Installed: 2\n"
        "Package: c\n"
        "Auto-Installed: 1 \n"
    )

    assert parse_extended_states(text) == {"c"}


def test_set_auto_installed_matches_exact_names_only():
    records = [PackageRecord(name="foo"), PackageRecord(name="foo-doc"), PackageRecord(name="bar")]
    set_auto_installed(records, parse_extended_states("Package: foo\nAuto-Installed: 1\n"))

    assert records[0].auto_installed is True
    assert records[1].auto_installed is None
    assert records[2].auto_installed is None
    assert "AutoInstalled" not in records[1].to_dict()
    assert records[0].to_dict()["AutoInstalled"] is True


def test_only_newline_separates_lines():
    records = parse_dpkg_status("Package: foo\nDescription: x\u2028Depends: evil\nVersion: 1\n")

    assert records[0].deps == set()
    assert records[0].version == "1"
    assert parse_extended_states("Package: foo\nNote: \x85Auto-Installed: 1\n") == set()
