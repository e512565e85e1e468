"""Tests for the network printer scanner."""

import asyncio
from ipaddress import IPv4Address

import pytest

from printer_scanner._types import SubnetDescriptor
from printer_scanner.scanner import NetworkPrinterScanner

from conftest import FakeNeighborResolver, FakeSnmpTransport, printer_oids

SLASH_29 = SubnetDescriptor(IPv4Address("192.168.1.9"), IPv4Address("255.255.255.248"))
SLASH_24 = SubnetDescriptor(IPv4Address("10.0.0.200"), IPv4Address("255.255.255.0"))


def make_scanner(transport, subnets, **kwargs):
    return NetworkPrinterScanner(
        transport=transport,
        neighbors=kwargs.pop("neighbors", FakeNeighborResolver()),
        subnet_source=lambda: list(subnets),
        **kwargs,
    )


class TestScan:
    """Tests for the scan entry point."""

    @pytest.mark.asyncio
    async def test_no_subnets(self, fake_transport):
        """No local subnets is a completed scan with no printers."""
        scanner = make_scanner(fake_transport, [])

        printers = await scanner.scan()

        assert printers == []
        assert fake_transport.calls == []
        assert scanner.last_result.status == "completed"

    @pytest.mark.asyncio
    async def test_single_printer_on_small_subnet(self, fake_transport):
        """Should find the one printer among five candidate hosts."""
        fake_transport.add_host("192.168.1.10", printer_oids())
        scanner = make_scanner(fake_transport, [SLASH_29])

        printers = await scanner.scan()

        assert len(printers) == 1
        printer = printers[0]
        assert printer.ip_address == "192.168.1.10"
        assert printer.serial_number == "SN1"
        assert printer.page_count == 1200
        assert printer.toner_black == 30
        assert printer.toner_cyan == 60
        assert printer.toner_magenta is None
        assert printer.toner_yellow is None

        probed = {ip for ip, _ in fake_transport.calls}
        assert probed == {f"192.168.1.{i}" for i in range(10, 15)}
        assert scanner.last_result.hosts_probed == 5
        assert scanner.last_result.printers_found == 1
        assert scanner.last_result.subnets == ["192.168.1.9/255.255.255.248"]

    @pytest.mark.asyncio
    async def test_local_address_never_probed(self, fake_transport):
        scanner = make_scanner(fake_transport, [SLASH_29])

        await scanner.scan()

        assert "192.168.1.9" not in {ip for ip, _ in fake_transport.calls}

    @pytest.mark.asyncio
    async def test_multiple_subnets(self, fake_transport):
        fake_transport.add_host("192.168.1.12", printer_oids(serial="A"))
        fake_transport.add_host("10.0.0.7", printer_oids(serial="B"))
        scanner = make_scanner(fake_transport, [SLASH_29, SLASH_24])

        printers = await scanner.scan()

        assert [p.serial_number for p in printers] == ["A", "B"]
        assert scanner.last_result.hosts_probed == 5 + 253

    @pytest.mark.asyncio
    async def test_discover_alias(self, fake_transport):
        fake_transport.add_host("192.168.1.11", printer_oids())
        scanner = make_scanner(fake_transport, [SLASH_29])

        assert scanner.name == "snmp-printer"
        assert await scanner.is_available() is True
        assert len(await scanner.discover()) == 1

    @pytest.mark.asyncio
    async def test_close_closes_transport(self, fake_transport):
        scanner = make_scanner(fake_transport, [])

        await scanner.close()

        assert fake_transport.closed is True


class TestBatching:
    """Tests for bounded concurrency."""

    @pytest.mark.asyncio
    async def test_concurrency_bounded_by_batch_size(self):
        """Never more than batch_size probes in flight."""
        transport = FakeSnmpTransport(delay=0.001)
        scanner = make_scanner(transport, [SLASH_24], batch_size=20)

        await scanner.scan()

        assert transport.max_in_flight <= 20
        assert transport.max_in_flight > 1
        assert scanner.last_result.hosts_probed == 253

    @pytest.mark.asyncio
    async def test_batches_are_sequential(self):
        """The next batch starts only after the whole previous batch finishes."""
        transport = FakeSnmpTransport()
        # One slow host in the first batch holds back the second batch
        transport.add_host("10.0.0.1", {}, delay=0.05)
        scanner = make_scanner(transport, [SLASH_24], batch_size=4)

        await scanner.scan()

        hosts_in_order = []
        for ip, _ in transport.calls:
            if ip not in hosts_in_order:
                hosts_in_order.append(ip)
        first_batch = {"10.0.0.1", "10.0.0.2", "10.0.0.3", "10.0.0.4"}
        assert set(hosts_in_order[:4]) == first_batch
        assert hosts_in_order[4] == "10.0.0.5"

    @pytest.mark.asyncio
    async def test_results_in_host_order(self, fake_transport):
        """Printers come back in ascending host order within a batch."""
        fake_transport.add_host("192.168.1.13", printer_oids(serial="late"), delay=0.0)
        fake_transport.add_host("192.168.1.10", printer_oids(serial="early"), delay=0.02)
        scanner = make_scanner(fake_transport, [SLASH_29])

        printers = await scanner.scan()

        assert [p.serial_number for p in printers] == ["early", "late"]


class TestDeadline:
    """Tests for the overall scan deadline."""

    @pytest.mark.asyncio
    async def test_deadline_returns_completed_batches(self):
        """Printers from finished batches survive the deadline."""
        transport = FakeSnmpTransport()
        transport.add_host("10.0.0.1", printer_oids(serial="fast"))
        # Second batch hangs far past the deadline
        for i in range(3, 5):
            transport.add_host(f"10.0.0.{i}", printer_oids(serial=f"slow{i}"), delay=10)
        scanner = make_scanner(transport, [SLASH_24], batch_size=2, scan_timeout=0.3)

        printers = await asyncio.wait_for(scanner.scan(), timeout=5)

        assert [p.serial_number for p in printers] == ["fast"]
        assert scanner.last_result.status == "timed_out"
        assert scanner.last_result.printers_found == 1

    @pytest.mark.asyncio
    async def test_deadline_mid_way_through_second_subnet(self):
        """Printers from the first subnet survive a deadline hit on the second."""
        transport = FakeSnmpTransport()
        transport.add_host("192.168.1.10", printer_oids(serial="SN1"))
        for i in range(1, 255):
            transport.delays[f"10.0.0.{i}"] = 10
        scanner = make_scanner(transport, [SLASH_29, SLASH_24], scan_timeout=0.5)

        printers = await asyncio.wait_for(scanner.scan(), timeout=5)

        assert [p.serial_number for p in printers] == ["SN1"]
        assert scanner.last_result.status == "timed_out"
        assert scanner.last_result.hosts_probed == 5

    @pytest.mark.asyncio
    async def test_caller_cancellation_propagates(self):
        transport = FakeSnmpTransport(delay=10)
        scanner = make_scanner(transport, [SLASH_29])

        task = asyncio.create_task(scanner.scan())
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


class TestFailures:
    """Tests for degraded scans."""

    @pytest.mark.asyncio
    async def test_subnet_enumeration_failure(self, fake_transport):
        """A failing subnet source yields an empty, failed scan."""
        def broken():
            raise OSError("no interfaces")

        scanner = NetworkPrinterScanner(
            transport=fake_transport,
            neighbors=FakeNeighborResolver(),
            subnet_source=broken,
        )

        printers = await scanner.scan()

        assert printers == []
        assert scanner.last_result.status == "failed"
        assert "no interfaces" in scanner.last_result.error_message

    @pytest.mark.asyncio
    async def test_failure_keeps_partial_results(self, fake_transport):
        """Printers from earlier subnets survive a later failure."""
        fake_transport.add_host("192.168.1.10", printer_oids())
        scanner = make_scanner(fake_transport, [SLASH_29, "not a subnet"])

        printers = await scanner.scan()

        assert len(printers) == 1
        assert scanner.last_result.status == "failed"

    @pytest.mark.asyncio
    async def test_truncated_subnet_recorded(self, fake_transport):
        """Subnets larger than 254 hosts are scanned partially and reported."""
        big = SubnetDescriptor(IPv4Address("172.16.5.20"), IPv4Address("255.255.0.0"))
        scanner = make_scanner(fake_transport, [big])

        await scanner.scan()

        assert scanner.last_result.truncated is True
        assert scanner.last_result.truncated_subnets == ["172.16.5.20/255.255.0.0"]
        assert scanner.last_result.hosts_probed == 254
