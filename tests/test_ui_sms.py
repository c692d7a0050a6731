import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt6.QtWidgets import QApplication

from repair_shop.models import SMS_FAILED, SMS_SENT
from repair_shop.ui import SmsTab


@pytest.fixture(scope="module")
def qapp():
    return QApplication.instance() or QApplication([])


@pytest.fixture
def notices():
    return []


@pytest.fixture
def sms_tab(qapp, state, notices):
    tab = SmsTab(state, None, notices.append)
    tab.to.setText("555-0100")
    tab.msg.setPlainText("hello")
    return tab


class TestSmsTabSend:
    def test_failure_keeps_message(self, sms_tab, state, failing_transport, notices):
        sms_tab.transport_factory = lambda: failing_transport
        sms_tab.send()
        assert sms_tab.msg.toPlainText() == "hello"
        assert [s.status for s in state.sms_logs] == [SMS_FAILED]
        assert notices == ["Failed to send SMS"]

    def test_success_clears_message(self, sms_tab, state, transport, notices):
        sms_tab.transport_factory = lambda: transport
        sms_tab.send()
        assert sms_tab.msg.toPlainText() == ""
        assert transport.sent == [("555-0100", "hello")]
        assert [s.status for s in state.sms_logs] == [SMS_SENT]
        assert notices == ["SMS sent"]

    def test_retry_after_failure(self, sms_tab, state, transport, failing_transport, notices):
        sms_tab.transport_factory = lambda: failing_transport
        sms_tab.send()
        sms_tab.transport_factory = lambda: transport
        sms_tab.send()
        assert sms_tab.msg.toPlainText() == ""
        assert sorted(s.status for s in state.sms_logs) == [SMS_FAILED, SMS_SENT]
        assert notices == ["Failed to send SMS", "SMS sent"]
        assert sms_tab.table.rowCount() == 2

    def test_missing_number_writes_nothing(self, sms_tab, state, transport, notices):
        sms_tab.transport_factory = lambda: transport
        sms_tab.to.clear()
        sms_tab.send()
        assert state.sms_logs == []
        assert sms_tab.msg.toPlainText() == "hello"
        assert notices == ["Number and message required"]

    def test_button_restored_after_send(self, sms_tab, failing_transport):
        sms_tab.transport_factory = lambda: failing_transport
        sms_tab.send()
        assert sms_tab.send_btn.isEnabled()
        assert sms_tab.send_btn.text() == "Send SMS"
