"""
PyQt6 shell: Dashboard, Repairs, SMS Center, Password Vault and Settings tabs.

Widgets never talk to the database directly. They are handed the AppState,
vault and capability objects by the composition root (app.py), subscribe to
the state, and redraw whenever it notifies.
"""
import logging
import os
from datetime import datetime

import matplotlib
matplotlib.use("QtAgg")
from matplotlib.backends.backend_qtagg import FigureCanvasQTAgg as FigureCanvas
from matplotlib.figure import Figure

from PyQt6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QFormLayout,
    QPushButton, QLabel, QLineEdit, QPlainTextEdit, QTableWidget, QTableWidgetItem,
    QTabWidget, QMessageBox, QFileDialog, QHeaderView, QGroupBox
)
from PyQt6.QtGui import QAction, QColor, QBrush, QDesktopServices, QFont, QIcon, QPixmap
from PyQt6.QtCore import Qt, QUrl

from . import actions, config
from .dashboard import aggregate
from .errors import ValidationError
from .export import REPAIR_HEADER, SMS_HEADER, export_table, repair_rows, sms_rows
from .models import SMS_SENT, STATUS_COMPLETED
from .services import save_picked_image

logger = logging.getLogger(__name__)

STATUS_MS = 4000
GREEN = QColor(46, 125, 50)
ORANGE = QColor(239, 108, 0)
RED = QColor(198, 40, 40)


def fmt_millis(ms, pattern):
    return datetime.fromtimestamp(ms / 1000.0).strftime(pattern) if ms else ""


# -------------------------
# Qt-backed capabilities
# -------------------------
class QtDialer:
    def dial(self, phone: str):
        if not QDesktopServices.openUrl(QUrl(f"tel:{phone}")):
            logger.warning("No handler for tel:%s", phone)


class QtImagePicker:
    def __init__(self, parent=None, images_dir=config.IMAGES_DIR):
        self.parent = parent
        self.images_dir = images_dir

    def pick_image(self):
        fname, _ = QFileDialog.getOpenFileName(self.parent, "Add Photo", "", "Images (*.png *.jpg *.jpeg *.bmp)")
        return save_picked_image(fname or None, self.images_dir)


def make_table(headers):
    table = QTableWidget()
    table.setColumnCount(len(headers))
    table.setHorizontalHeaderLabels(headers)
    table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
    table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
    table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
    return table


def export_dialog(parent, title, default_name, header, rows, sheet):
    fname, _ = QFileDialog.getSaveFileName(parent, title, default_name, "CSV Files (*.csv);;Excel files (*.xlsx)")
    if not fname:
        return
    try:
        count = export_table(header, rows, fname, sheet)
    except OSError as e:
        QMessageBox.critical(parent, "Error", f"Export failed: {e}")
        return
    QMessageBox.information(parent, "Exported", f"Exported {count} rows to {fname}")


# -------------------------
# Dashboard
# -------------------------
class DashboardTab(QWidget):
    def __init__(self, state):
        super().__init__()
        self.state = state
        v = QVBoxLayout(self)
        v.addWidget(QLabel("<h2>Overview</h2>"))
        cards = QHBoxLayout()
        self.pending_label = QLabel("0"); self.completed_label = QLabel("0")
        for title, lbl in (("Pending Repairs", self.pending_label), ("Completed", self.completed_label)):
            box = QGroupBox(title); bl = QVBoxLayout(box)
            font = QFont(); font.setPointSize(22); font.setBold(True); lbl.setFont(font)
            lbl.setAlignment(Qt.AlignmentFlag.AlignCenter)
            bl.addWidget(lbl)
            cards.addWidget(box)
        v.addLayout(cards)
        v.addWidget(QLabel("<h3>Last 7 Days Activity</h3>"))
        body = QHBoxLayout()
        self.days_table = make_table(["Day", "Received", "Done"])
        body.addWidget(self.days_table)
        self.fig = Figure(figsize=(4, 3))
        self.canvas = FigureCanvas(self.fig)
        body.addWidget(self.canvas)
        v.addLayout(body)
        state.subscribe(self.refresh)
        self.refresh(state)

    def refresh(self, state=None):
        summary = aggregate(self.state.repairs, datetime.now())
        self.pending_label.setText(str(summary.pending_count))
        self.completed_label.setText(str(summary.completed_count))
        self.days_table.setRowCount(len(summary.days))
        for i, b in enumerate(summary.days):
            self.days_table.setItem(i, 0, QTableWidgetItem(b.day.strftime("%b %d")))
            self.days_table.setItem(i, 1, QTableWidgetItem(str(b.received)))
            self.days_table.setItem(i, 2, QTableWidgetItem(str(b.completed)))
        labels = [b.day.strftime("%b %d") for b in summary.days]
        xs = range(len(labels))
        self.fig.clear()
        ax = self.fig.add_subplot(111)
        ax.bar([x - 0.2 for x in xs], [b.received for b in summary.days], width=0.4, label="Received")
        ax.bar([x + 0.2 for x in xs], [b.completed for b in summary.days], width=0.4, label="Done")
        ax.set_xticks(list(xs)); ax.set_xticklabels(labels, rotation=45, fontsize=7)
        ax.set_ylabel("Jobs"); ax.legend(fontsize=7)
        self.fig.tight_layout()
        self.canvas.draw()


# -------------------------
# Repairs
# -------------------------
class RepairsTab(QWidget):
    def __init__(self, state, image_picker, printer, dialer, notify):
        super().__init__()
        self.state = state
        self.image_picker = image_picker
        self.printer = printer
        self.dialer = dialer
        self.notify = notify
        self.image_path = None
        self.rows = []
        v = QVBoxLayout(self)

        box = QGroupBox("New Repair Job"); form = QFormLayout(box)
        self.cname = QLineEdit(); self.phone = QLineEdit()
        self.model = QLineEdit(); self.imei = QLineEdit()
        self.problem = QPlainTextEdit(); self.problem.setFixedHeight(50)
        self.pin = QLineEdit(); self.pin.setEchoMode(QLineEdit.EchoMode.Password)
        self.password = QLineEdit(); self.password.setEchoMode(QLineEdit.EchoMode.Password)
        self.pattern = QLineEdit()
        form.addRow("Customer Name *:", self.cname)
        form.addRow("Phone *:", self.phone)
        form.addRow("Model:", self.model)
        form.addRow("IMEI:", self.imei)
        form.addRow("Problem / Issue:", self.problem)
        form.addRow("PIN (optional):", self.pin)
        form.addRow("Password (optional):", self.password)
        form.addRow("Pattern (describe):", self.pattern)
        self.photo_label = QLabel("No photo")
        form.addRow("Photo:", self.photo_label)
        h = QHBoxLayout()
        photo_btn = QPushButton("Add Photo"); photo_btn.clicked.connect(self.add_photo)
        save_btn = QPushButton("Save Job"); save_btn.clicked.connect(self.save)
        h.addWidget(photo_btn); h.addStretch(); h.addWidget(save_btn)
        form.addRow(h)
        v.addWidget(box)

        top = QHBoxLayout()
        top.addWidget(QLabel("<b>All Repairs</b>"))
        top.addStretch()
        self.count_label = QLabel("0 items")
        top.addWidget(self.count_label)
        v.addLayout(top)
        self.table = make_table(["ID", "Customer", "Model", "Phone", "Issue", "Added", "Status"])
        v.addWidget(self.table)
        h = QHBoxLayout()
        complete = QPushButton("Mark Complete"); complete.clicked.connect(self.mark_complete)
        invoice = QPushButton("Generate Invoice"); invoice.clicked.connect(self.generate_invoice)
        call = QPushButton("Call Customer"); call.clicked.connect(self.call)
        delete = QPushButton("Delete"); delete.clicked.connect(self.delete)
        export = QPushButton("Export"); export.clicked.connect(self.export)
        for b in (complete, invoice, call, delete, export):
            h.addWidget(b)
        v.addLayout(h)
        state.subscribe(self.refresh)
        self.refresh(state)

    def refresh(self, state=None):
        self.rows = list(self.state.repairs)
        self.count_label.setText(f"{len(self.rows)} items")
        self.table.setRowCount(len(self.rows))
        for i, r in enumerate(self.rows):
            id_item = QTableWidgetItem(str(r.id))
            if r.image_path and os.path.exists(r.image_path):
                id_item.setIcon(QIcon(QPixmap(r.image_path)))
            self.table.setItem(i, 0, id_item)
            self.table.setItem(i, 1, QTableWidgetItem(r.customer_name))
            self.table.setItem(i, 2, QTableWidgetItem(r.model))
            self.table.setItem(i, 3, QTableWidgetItem(r.phone))
            self.table.setItem(i, 4, QTableWidgetItem(r.problem))
            self.table.setItem(i, 5, QTableWidgetItem(fmt_millis(r.created_at, "%d %b %Y")))
            status = QTableWidgetItem(r.status)
            status.setForeground(QBrush(GREEN if r.status == STATUS_COMPLETED else ORANGE))
            self.table.setItem(i, 6, status)

    def selected_job(self):
        r = self.table.currentRow()
        if r < 0 or r >= len(self.rows):
            QMessageBox.information(self, "Select", "Select a repair job first.")
            return None
        return self.rows[r]

    def add_photo(self):
        path = self.image_picker.pick_image()
        if path is None:
            return
        self.image_path = path
        self.photo_label.setText(os.path.basename(path))

    def save(self):
        try:
            actions.save_repair(
                self.state, self.cname.text(), self.phone.text(), self.model.text(), self.imei.text(),
                self.problem.toPlainText(), self.image_path, self.pin.text(), self.password.text(),
                self.pattern.text(),
            )
        except ValidationError as e:
            self.notify(str(e))
            return
        for w in (self.cname, self.phone, self.model, self.imei, self.pin, self.password, self.pattern):
            w.clear()
        self.problem.clear()
        self.image_path = None
        self.photo_label.setText("No photo")
        self.notify("Repair job added")

    def mark_complete(self):
        job = self.selected_job()
        if job:
            actions.complete_repair(self.state, job)

    def generate_invoice(self):
        job = self.selected_job()
        if not job:
            return
        path = actions.print_invoice(job, self.printer)
        self.notify(f"Invoice saved to {path}")

    def call(self):
        job = self.selected_job()
        if job:
            actions.call_customer(job, self.dialer)

    def delete(self):
        job = self.selected_job()
        if not job:
            return
        ans = QMessageBox.question(self, "Delete Repair?", f"Delete {job.customer_name} - {job.model}? This action cannot be undone.")
        if ans == QMessageBox.StandardButton.Yes:
            actions.delete_repair(self.state, job)
            self.notify(f"{job.customer_name} deleted")

    def export(self):
        export_dialog(self, "Export Repairs", "repairs.csv", REPAIR_HEADER, repair_rows(self.state.repairs), "Repairs")


# -------------------------
# SMS Center
# -------------------------
class SmsTab(QWidget):
    def __init__(self, state, transport_factory, notify):
        super().__init__()
        self.state = state
        self.transport_factory = transport_factory
        self.notify = notify
        v = QVBoxLayout(self)
        box = QGroupBox("Send SMS"); form = QFormLayout(box)
        self.to = QLineEdit()
        self.msg = QPlainTextEdit(); self.msg.setFixedHeight(70)
        form.addRow("To:", self.to)
        form.addRow("Message:", self.msg)
        self.send_btn = QPushButton("Send SMS"); self.send_btn.clicked.connect(self.send)
        form.addRow(self.send_btn)
        v.addWidget(box)
        top = QHBoxLayout()
        top.addWidget(QLabel("<b>SMS History</b>")); top.addStretch()
        self.count_label = QLabel("0 messages"); top.addWidget(self.count_label)
        v.addLayout(top)
        self.table = make_table(["To", "Message", "Sent", "Status"])
        v.addWidget(self.table)
        h = QHBoxLayout(); h.addStretch()
        export = QPushButton("Export"); export.clicked.connect(self.export)
        h.addWidget(export)
        v.addLayout(h)
        state.subscribe(self.refresh)
        self.refresh(state)

    def refresh(self, state=None):
        logs = self.state.sms_logs
        self.count_label.setText(f"{len(logs)} messages")
        self.table.setRowCount(len(logs))
        for i, s in enumerate(logs):
            self.table.setItem(i, 0, QTableWidgetItem(s.to_number))
            self.table.setItem(i, 1, QTableWidgetItem(s.message))
            self.table.setItem(i, 2, QTableWidgetItem(fmt_millis(s.sent_at, "%d %b, %H:%M")))
            st = QTableWidgetItem(s.status.upper())
            st.setForeground(QBrush(GREEN if s.status == SMS_SENT else RED))
            self.table.setItem(i, 3, st)

    def send(self):
        self.send_btn.setEnabled(False); self.send_btn.setText("Sending...")
        QApplication.processEvents()
        try:
            log = actions.send_sms(self.state, self.transport_factory(), self.to.text(), self.msg.toPlainText())
        except ValidationError as e:
            self.notify(str(e))
            return
        finally:
            self.send_btn.setEnabled(True); self.send_btn.setText("Send SMS")
        if log.status == SMS_SENT:
            self.msg.clear()
            self.notify("SMS sent")
        else:
            self.notify("Failed to send SMS")

    def export(self):
        export_dialog(self, "Export SMS History", "sms_logs.csv", SMS_HEADER, sms_rows(self.state.sms_logs), "SMS")


# -------------------------
# Password Vault
# -------------------------
class VaultTab(QWidget):
    def __init__(self, vault, notify):
        super().__init__()
        self.vault = vault
        self.notify = notify
        self.labels = []
        v = QVBoxLayout(self)
        box = QGroupBox("Save New Password"); form = QFormLayout(box)
        self.key = QLineEdit(); self.key.setPlaceholderText("e.g. Google account")
        self.value = QLineEdit(); self.value.setEchoMode(QLineEdit.EchoMode.Password)
        form.addRow("Label:", self.key)
        form.addRow("Password / PIN:", self.value)
        save = QPushButton("Save"); save.clicked.connect(self.save)
        form.addRow(save)
        v.addWidget(box)
        v.addWidget(QLabel("<b>Saved Passwords</b>"))
        self.table = make_table(["Label", "Secret"])
        v.addWidget(self.table)
        h = QHBoxLayout(); h.addStretch()
        delete = QPushButton("Delete"); delete.clicked.connect(self.delete)
        h.addWidget(delete)
        v.addLayout(h)
        self.refresh()

    def refresh(self):
        entries = self.vault.list_all()
        self.labels = list(entries.keys())
        self.table.setRowCount(len(self.labels))
        for i, label in enumerate(self.labels):
            self.table.setItem(i, 0, QTableWidgetItem(label))
            self.table.setItem(i, 1, QTableWidgetItem(entries[label]))

    def save(self):
        try:
            actions.save_credential(self.vault, self.key.text(), self.value.text())
        except ValidationError as e:
            self.notify(str(e))
            return
        self.key.clear(); self.value.clear()
        self.refresh()

    def delete(self):
        r = self.table.currentRow()
        if r < 0 or r >= len(self.labels):
            QMessageBox.information(self, "Select", "Select an entry to delete.")
            return
        self.vault.delete(self.labels[r])
        self.refresh()


# -------------------------
# Settings
# -------------------------
class SettingsTab(QWidget):
    def __init__(self, db, refresh_callback=None):
        super().__init__()
        self.db = db
        self.refresh_callback = refresh_callback
        v = QVBoxLayout(self)
        form = QFormLayout()
        self.shop_name = QLineEdit(db.get_setting("shop_name", ""))
        self.gateway_url = QLineEdit(db.get_setting("sms_gateway_url", ""))
        self.gateway_token = QLineEdit(db.get_setting("sms_gateway_token", ""))
        self.gateway_token.setEchoMode(QLineEdit.EchoMode.Password)
        self.sender_id = QLineEdit(db.get_setting("sms_sender_id", ""))
        form.addRow("Shop Name:", self.shop_name)
        form.addRow("SMS Gateway URL:", self.gateway_url)
        form.addRow("SMS Gateway Token:", self.gateway_token)
        form.addRow("SMS Sender ID:", self.sender_id)
        v.addLayout(form)
        btn_h = QHBoxLayout()
        save = QPushButton("Save All"); save.clicked.connect(self.save_all)
        backup = QPushButton("Backup DB"); backup.clicked.connect(self.backup_db)
        btn_h.addWidget(save); btn_h.addWidget(backup)
        v.addLayout(btn_h)
        v.addStretch()

    def save_all(self):
        self.db.set_setting("shop_name", self.shop_name.text())
        self.db.set_setting("sms_gateway_url", self.gateway_url.text())
        self.db.set_setting("sms_gateway_token", self.gateway_token.text())
        self.db.set_setting("sms_sender_id", self.sender_id.text())
        if self.refresh_callback: self.refresh_callback()
        QMessageBox.information(self, "Saved", "Settings saved.")

    def backup_db(self):
        folder = QFileDialog.getExistingDirectory(self, "Select Backup Folder", os.getcwd())
        if not folder: return
        try:
            dest = self.db.backup_to(folder)
        except OSError as e:
            QMessageBox.warning(self, "Backup Failed", f"Backup failed: {e}")
            return
        QMessageBox.information(self, "Backup Created", f"Backup saved to:\n{dest}")


# -------- Main Window --------
class MainWindow(QMainWindow):
    def __init__(self, db, state, vault, transport_factory, printer, dialer=None, image_picker=None):
        super().__init__()
        self.db = db
        self.state = state
        self.resize(*config.WINDOW_SIZE)
        toolbar = self.addToolBar("Main")
        refresh_action = QAction(QIcon.fromTheme("view-refresh"), "Refresh", self)
        refresh_action.triggered.connect(self.refresh_all); toolbar.addAction(refresh_action)
        dialer = dialer or QtDialer()
        image_picker = image_picker or QtImagePicker(self)
        self.dashboard_tab = DashboardTab(state)
        self.repairs_tab = RepairsTab(state, image_picker, printer, dialer, self.show_notice)
        self.sms_tab = SmsTab(state, transport_factory, self.show_notice)
        self.vault_tab = VaultTab(vault, self.show_notice)
        self.settings_tab = SettingsTab(db, refresh_callback=self.apply_title)
        self.tabs = QTabWidget()
        self.tabs.addTab(self.dashboard_tab, "Dashboard")
        self.tabs.addTab(self.repairs_tab, "Repairs")
        self.tabs.addTab(self.sms_tab, "SMS Center")
        self.tabs.addTab(self.vault_tab, "Password Vault")
        self.tabs.addTab(self.settings_tab, "Settings")
        self.tabs.currentChanged.connect(self.on_tab_changed)
        self.setCentralWidget(self.tabs)
        self.setStyleSheet(f"QGroupBox {{ font-weight: bold; }} QPushButton {{ padding: 4px 10px; }} "
                           f"QTabBar::tab:selected {{ color: {config.DEFAULT_BRAND_COLOR}; }}")
        self.apply_title()

    def apply_title(self):
        shop = self.db.get_setting("shop_name", "")
        self.setWindowTitle(f"{config.APP_NAME} - {shop}" if shop else config.APP_NAME)

    def show_notice(self, text):
        self.statusBar().showMessage(text, STATUS_MS)

    def on_tab_changed(self, idx):
        # the vault has no observer; re-read it whenever its tab is shown
        if self.tabs.widget(idx) is self.vault_tab:
            self.vault_tab.refresh()

    def refresh_all(self):
        self.state.reload()
        self.vault_tab.refresh()
