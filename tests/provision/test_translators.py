import threading

import pytest

from dockprov.provision.centos import CentosProvisioner
from dockprov.provision.channel import CommandResult
from dockprov.provision.errors import (
    CancelledError,
    ChannelError,
    CommandExecutionError,
    ProvisionError,
    UnsupportedActionError,
)
from dockprov.provision.pkgaction import PackageAction, ServiceAction
from dockprov.provision.ubuntu import UbuntuProvisioner


# ----------------- package translator -----------------

@pytest.mark.parametrize("cls", [CentosProvisioner, UbuntuProvisioner])
def test_install_uses_install_verb_and_verbatim_name(make_driver, cls):
    driver = make_driver()
    cls(driver).package("docker-ce-cli", PackageAction.INSTALL)
    (cmd,) = driver.channel.commands
    assert " install " in cmd
    assert cmd.endswith(" docker-ce-cli")


@pytest.mark.parametrize(
    "action, expected",
    [
        (PackageAction.INSTALL, "sudo -E yum -y install curl"),
        (PackageAction.REMOVE, "sudo -E yum -y remove curl"),
        (PackageAction.UPGRADE, "sudo -E yum -y upgrade curl"),
    ],
)
def test_centos_package_commands(make_driver, action, expected):
    driver = make_driver()
    CentosProvisioner(driver).package("curl", action)
    assert driver.channel.commands == [expected]


def test_ubuntu_package_commands(make_driver):
    driver = make_driver()
    p = UbuntuProvisioner(driver)
    p.package("curl", PackageAction.INSTALL)
    p.package("curl", PackageAction.REMOVE)
    assert driver.channel.commands == [
        "DEBIAN_FRONTEND=noninteractive sudo -E apt-get install -y curl",
        "DEBIAN_FRONTEND=noninteractive sudo -E apt-get remove -y curl",
    ]


def test_ubuntu_upgrade_is_unsupported(make_driver):
    driver = make_driver()
    with pytest.raises(UnsupportedActionError) as exc:
        UbuntuProvisioner(driver).package("curl", PackageAction.UPGRADE)
    assert exc.value.family == "Ubuntu"
    assert driver.channel.commands == []


# ----------------- service translator -----------------

@pytest.mark.parametrize("action", list(ServiceAction))
def test_centos_services_use_systemctl(make_driver, action):
    driver = make_driver()
    CentosProvisioner(driver).service("docker", action)
    assert driver.channel.commands == [f"sudo systemctl {action.value} docker"]


def test_ubuntu_services(make_driver):
    driver = make_driver()
    p = UbuntuProvisioner(driver)
    p.service("docker", ServiceAction.RESTART)
    p.service("docker", ServiceAction.ENABLE)
    p.service("docker", ServiceAction.DISABLE)
    assert driver.channel.commands == [
        "sudo service docker restart",
        "sudo update-rc.d docker enable",
        "sudo update-rc.d docker disable",
    ]


# ----------------- error propagation -----------------

def test_nonzero_exit_raises_command_execution_error(make_driver):
    driver = make_driver(responses={"yum -y install": CommandResult("", "No package nope available.", 1)})
    with pytest.raises(CommandExecutionError) as exc:
        CentosProvisioner(driver).package("nope", PackageAction.INSTALL)
    assert exc.value.command == "sudo -E yum -y install nope"
    assert exc.value.exit_status == 1
    assert "No package nope" in str(exc.value)


def test_channel_failure_raises_command_execution_error(make_driver):
    driver = make_driver(responses={"systemctl": ChannelError("socket closed")})
    with pytest.raises(CommandExecutionError) as exc:
        CentosProvisioner(driver).service("docker", ServiceAction.START)
    assert isinstance(exc.value.cause, ChannelError)
    assert exc.value.exit_status is None


def test_no_retry_at_translator_layer(make_driver):
    driver = make_driver(responses={"apt-get": ("", "E: locked", 100)})
    with pytest.raises(CommandExecutionError):
        UbuntuProvisioner(driver).package("curl", PackageAction.INSTALL)
    assert driver.channel.count("apt-get") == 1


# ----------------- cancellation -----------------

def test_cancelled_before_command_issues_nothing(make_driver):
    driver = make_driver()
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(CancelledError):
        CentosProvisioner(driver, cancel=cancel).package("curl", PackageAction.INSTALL)
    assert driver.channel.commands == []


def test_cancelled_during_command_discards_result(make_driver):
    cancel = threading.Event()

    def slow_install(cmd):
        cancel.set()
        return CommandResult("Complete!", "", 0)

    driver = make_driver(responses={"yum": slow_install})
    with pytest.raises(CancelledError):
        CentosProvisioner(driver, cancel=cancel).package("curl", PackageAction.INSTALL)
    assert driver.channel.count("yum") == 1


# ----------------- host identity & family hooks -----------------

def test_centos_set_hostname_is_guarded(make_driver):
    driver = make_driver()
    CentosProvisioner(driver).set_hostname("node-1.example")
    set_cmd, hosts_cmd = driver.channel.commands
    assert set_cmd == "sudo hostname node-1.example && echo node-1.example | sudo tee /etc/hostname"
    assert hosts_cmd.startswith("grep -qE '^127\\.0\\.0\\.1")
    assert "node-1\\.example([[:space:]]|$)" in hosts_cmd
    assert "|| sudo sed -i '/^127\\.0\\.0\\.1/ s/$/ node-1.example/' /etc/hosts" in hosts_cmd


def test_ubuntu_set_hostname_rewrites_loopback_entry(make_driver):
    driver = make_driver()
    UbuntuProvisioner(driver).set_hostname("node-2")
    hosts_cmd = driver.channel.commands[1]
    assert "sudo sed -i 's/^127.0.1.1.*/127.0.1.1 node-2/g' /etc/hosts" in hosts_cmd
    assert "echo '127.0.1.1 node-2' | sudo tee -a /etc/hosts" in hosts_cmd


def test_hostname_strips_output(make_driver):
    driver = make_driver(responses={"hostname": ("node-1\n", "", 0)})
    assert CentosProvisioner(driver).hostname() == "node-1"


def test_centos_sudoers_fix_runs_with_pty(make_driver):
    driver = make_driver()
    CentosProvisioner(driver).fix_sudoers()
    (cmd,) = driver.channel.pty_commands
    assert "requiretty" in cmd and "/etc/sudoers" in cmd


def test_ubuntu_has_no_sudoers_fix_or_firewall(make_driver):
    driver = make_driver()
    p = UbuntuProvisioner(driver)
    p.fix_sudoers()
    p.configure_firewall(2376)
    assert driver.channel.commands == []


def test_centos_firewall_opens_engine_port(make_driver):
    driver = make_driver()
    CentosProvisioner(driver).configure_firewall(2377)
    cmds = driver.channel.commands
    assert 'port="2377"' in cmds[0] and "/etc/firewalld/services/docker.xml" in cmds[0]
    assert "sudo grep -q '<service name=\"docker\"/>'" in cmds[2]
    assert cmds[-1] == "sudo systemctl restart firewalld"


def test_engine_responding_swallows_probe_failure(make_driver):
    driver = make_driver(responses={"docker version": ("", "Cannot connect to the Docker daemon", 1)})
    assert CentosProvisioner(driver).engine_responding() is False


def test_engine_port_comes_from_driver_url(make_driver):
    assert CentosProvisioner(make_driver(port=12376)).engine_port() == 12376


@pytest.mark.parametrize("name", ["node-1; rm -rf /", "node 1", "-node", "$(id)"])
def test_set_hostname_rejects_unsafe_names(make_driver, name):
    driver = make_driver()
    with pytest.raises(ProvisionError, match="invalid host name"):
        CentosProvisioner(driver).set_hostname(name)
    assert driver.channel.commands == []
