import pytest

from dockprov.provision.channel import CommandResult
from dockprov.provision.errors import ChannelError, DetectionError
from dockprov.provision.os_release import OsRelease, detect_os_release, parse_os_release

from conftest import CENTOS_OS_RELEASE, UBUNTU_OS_RELEASE, FakeChannel


def test_parse_centos_quoted_values():
    info = parse_os_release(CENTOS_OS_RELEASE)
    assert info == OsRelease(
        id="centos",
        version="7 (Core)",
        version_id="7",
        like=("rhel", "fedora"),
        name="CentOS Linux",
        pretty_name="CentOS Linux 7 (Core)",
    )


def test_parse_ubuntu_unquoted_id():
    info = parse_os_release(UBUNTU_OS_RELEASE)
    assert info.id == "ubuntu"
    assert info.like == ("debian",)
    assert info.version_id == "14.04"


def test_parse_skips_comments_and_blank_lines_and_normalises_id():
    info = parse_os_release("# generated\n\nID='CentOS'\nVERSION_ID=8\n")
    assert info.id == "centos"
    # VERSION absent -> falls back to VERSION_ID
    assert info.version == "8"


def test_parse_without_id_fails():
    with pytest.raises(DetectionError, match="no ID"):
        parse_os_release('NAME="Mystery"\nVERSION_ID=1\n')


def test_parse_garbage_line_fails():
    with pytest.raises(DetectionError, match="unparsable"):
        parse_os_release("ID=centos\nthis is not a key value pair\n")


def test_detect_reads_os_release_file():
    ch = FakeChannel({"cat /etc/os-release": (UBUNTU_OS_RELEASE, "", 0)})
    assert detect_os_release(ch).id == "ubuntu"
    assert ch.commands == ["cat /etc/os-release"]


def test_detect_nonzero_exit_is_detection_error():
    ch = FakeChannel({"cat /etc/os-release": CommandResult("", "No such file or directory", 1)})
    with pytest.raises(DetectionError, match="No such file"):
        detect_os_release(ch)


def test_detect_channel_failure_is_detection_error():
    ch = FakeChannel({"cat /etc/os-release": ChannelError("connection reset")})
    with pytest.raises(DetectionError) as exc:
        detect_os_release(ch)
    assert isinstance(exc.value.__cause__, ChannelError)
