# mainwindow.py
from PyQt5.QtWidgets import (
    QMainWindow, QStatusBar, QAction, QFileDialog, QMessageBox, QDockWidget,
    QWidget, QVBoxLayout, QFormLayout, QPushButton, QComboBox, QLabel, QGroupBox,
    QShortcut, QCheckBox, QDoubleSpinBox, QSpinBox, QProgressBar, QScrollArea
)
from PyQt5.QtCore import Qt
from PyQt5.QtGui import QKeySequence
import logging
from config import FORCE_CONTROLS, FORCE_TITLES, Settings
from engine import LayoutEngine
from errors import ExplorerError
from filters import ALL
from graphwidget import GraphWidget
from node import ATTRIBUTES

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, settings: Settings = None):
        super().__init__()
        self.settings = settings or Settings()
        self.setWindowTitle("Attribute Network Explorer")

        self.graphWidget = GraphWidget(self, tick_interval_ms=self.settings.viewer.tick_interval_ms)
        self.setCentralWidget(self.graphWidget)

        self.setStatusBar(QStatusBar(self))
        self.alphaBar = QProgressBar(self)
        self.alphaBar.setRange(0, 100)
        self.alphaBar.setFormat("alpha %p%")
        self.alphaBar.setMaximumWidth(180)
        self.statusBar().addPermanentWidget(self.alphaBar)
        self.graphWidget.alphaChanged.connect(lambda a: self.alphaBar.setValue(int(round(a * 100))))
        self.graphWidget.settled.connect(lambda: self.statusBar().showMessage("Layout settled.", 2000))
        self.graphWidget.layoutReset.connect(self.onLayoutReset)

        self.filterBoxes = {}
        self.forceEditors = {}
        self._syncing = False

        self.createActions()
        self.createMenuBar()
        self.createControlsDock()
        self.createShortcuts()

    def createActions(self):
        self.openAction = QAction("&Open Dataset...", self, triggered=self.openDataset)
        self.resetAction = QAction("&Reset Layout", self, triggered=self.graphWidget.resetLayout)
        self.clearFiltersAction = QAction("C&lear Filters", self, triggered=self.clearFilters)
        self.centerAction = QAction("&Center Graph", self, triggered=self.graphWidget.centerGraph)
        self.zoomInAction = QAction("Zoom &In", self, triggered=self.graphWidget.zoomIn)
        self.zoomOutAction = QAction("Zoom &Out", self, triggered=self.graphWidget.zoomOut)
        self.graphInfoAction = QAction("&Graph Info", self, triggered=self.showGraphInfo)

    def createMenuBar(self):
        menuBar = self.menuBar()

        fileMenu = menuBar.addMenu("&File")
        fileMenu.addAction(self.openAction)

        editMenu = menuBar.addMenu("&Layout")
        editMenu.addAction(self.resetAction)
        editMenu.addAction(self.clearFiltersAction)
        editMenu.addSeparator()
        editMenu.addAction(self.graphInfoAction)

        viewMenu = menuBar.addMenu("&View")
        viewMenu.addAction(self.zoomInAction)
        viewMenu.addAction(self.zoomOutAction)
        viewMenu.addAction(self.centerAction)

    def createControlsDock(self):
        dock = QDockWidget("Controls", self)
        dock.setAllowedAreas(Qt.LeftDockWidgetArea | Qt.RightDockWidgetArea)

        mainControlsWidget = QWidget()
        mainLayout = QVBoxLayout(mainControlsWidget)
        mainLayout.setAlignment(Qt.AlignTop)

        filterGroup = QGroupBox("Filters")
        filterLayout = QFormLayout()
        for attribute in ATTRIBUTES:
            box = QComboBox()
            box.setEnabled(False)
            box.currentTextChanged.connect(lambda text, a=attribute: self.onFilterChanged(a, text))
            filterLayout.addRow(QLabel(attribute.capitalize()), box)
            self.filterBoxes[attribute] = box
        filterGroup.setLayout(filterLayout)
        mainLayout.addWidget(filterGroup)

        for force, controls in FORCE_CONTROLS.items():
            group = QGroupBox(FORCE_TITLES[force])
            form = QFormLayout()
            for name, label, kind, lo, hi, step in controls:
                editor = self._makeEditor(force, name, kind, lo, hi, step)
                form.addRow(QLabel(label), editor)
                self.forceEditors[(force, name)] = editor
            group.setLayout(form)
            mainLayout.addWidget(group)

        btn_reset = QPushButton("Reset Layout (R)")
        btn_reset.clicked.connect(self.resetAction.trigger)
        mainLayout.addSpacing(10)
        mainLayout.addWidget(btn_reset)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(mainControlsWidget)
        dock.setWidget(scroll)
        self.addDockWidget(Qt.RightDockWidgetArea, dock)
        self.syncForceEditors()

    def _makeEditor(self, force, name, kind, lo, hi, step):
        if kind == "bool":
            editor = QCheckBox()
            editor.toggled.connect(lambda v, f=force, n=name: self.onForceChanged(f, n, v))
        elif kind == "int":
            editor = QSpinBox()
            editor.setRange(int(lo), int(hi))
            editor.setSingleStep(int(step))
            editor.valueChanged.connect(lambda v, f=force, n=name: self.onForceChanged(f, n, v))
        else:
            editor = QDoubleSpinBox()
            editor.setRange(lo, hi)
            editor.setSingleStep(step)
            editor.setDecimals(2 if step < 1 else 1)
            editor.valueChanged.connect(lambda v, f=force, n=name: self.onForceChanged(f, n, v))
        return editor

    def createShortcuts(self):
        QShortcut(QKeySequence("Ctrl+O"), self, self.openAction.trigger)
        QShortcut(QKeySequence("R"), self, self.resetAction.trigger)
        QShortcut(QKeySequence("C"), self, self.centerAction.trigger)
        QShortcut(QKeySequence("I"), self, self.graphInfoAction.trigger)
        QShortcut(QKeySequence(Qt.Key_Plus), self, self.zoomInAction.trigger)
        QShortcut(QKeySequence(Qt.Key_Equal), self, self.zoomInAction.trigger)
        QShortcut(QKeySequence(Qt.Key_Minus), self, self.zoomOutAction.trigger)

    # --------------------------
    # Dataset
    # --------------------------
    def openDataset(self):
        path, _ = QFileDialog.getOpenFileName(self, "Open Dataset", "", "JSON Files (*.json)")
        if path:
            self.loadDataset(path)

    def loadDataset(self, path) -> bool:
        try:
            engine = LayoutEngine.from_file(path, settings=self.settings)
        except ExplorerError as e:
            logger.error("Could not load %s: %s", path, e)
            QMessageBox.warning(self, "Error", f"Could not load the dataset.\n{e}")
            return False
        self.graphWidget.setEngine(engine)
        self.populateFilterOptions(engine.initial_options())
        self.syncForceEditors()
        stats = engine.data.stats()
        self.statusBar().showMessage(f"Loaded {path}: {stats['nodes']} nodes, {stats['edges']} links", 5000)
        return True

    # --------------------------
    # Filters
    # --------------------------
    def _setOptions(self, attribute, values):
        box = self.filterBoxes[attribute]
        self._syncing = True
        try:
            box.clear()
            box.addItem(ALL)
            box.addItems(list(values))
            box.setCurrentIndex(0)
            box.setEnabled(bool(values))
        finally:
            self._syncing = False

    def populateFilterOptions(self, options):
        for attribute in ATTRIBUTES:
            self._setOptions(attribute, options.get(attribute, ()))

    def onFilterChanged(self, attribute, text):
        if self._syncing or not text:
            return
        update = self.graphWidget.setFilter(attribute, text)
        if update is None:
            return
        for dependent, values in update.options.items():
            self._setOptions(dependent, values)
        shown = sum(1 for v in update.visibility.nodes.values() if v)
        self.statusBar().showMessage(f"{shown} of {len(update.visibility.nodes)} nodes shown.", 3000)

    def onLayoutReset(self):
        # The engine dropped its filter selection; show that in the boxes
        engine = self.graphWidget.engine
        if engine is not None:
            self.populateFilterOptions(engine.initial_options())

    def clearFilters(self):
        engine = self.graphWidget.engine
        if engine is None:
            return
        for attribute in ("state", "vendor", "type"):
            self.graphWidget.setFilter(attribute, ALL)
        self.populateFilterOptions(engine.initial_options())

    # --------------------------
    # Forces
    # --------------------------
    def syncForceEditors(self):
        engine = self.graphWidget.engine
        props = engine.properties if engine is not None else self.settings.forces
        self._syncing = True
        try:
            for (force, name), editor in self.forceEditors.items():
                value = getattr(props.record(force), name)
                if isinstance(editor, QCheckBox):
                    editor.setChecked(bool(value))
                else:
                    editor.setValue(value)
        finally:
            self._syncing = False

    def onForceChanged(self, force, name, value):
        if self._syncing:
            return
        try:
            self.graphWidget.setForceParameter(force, name, value)
        except ExplorerError as e:
            self.statusBar().showMessage(str(e), 4000)
            self.syncForceEditors()

    def showGraphInfo(self):
        engine = self.graphWidget.engine
        if engine is None:
            self.statusBar().showMessage("No dataset loaded.", 3000)
            return
        stats = engine.get_stats()
        self.statusBar().showMessage(
            f"Nodes: {stats['nodes']} ({stats['visible_nodes']} shown), "
            f"Links: {stats['edges']} ({stats['visible_links']} shown, {stats['effective_links']} springs), "
            f"alpha={stats['alpha']:.3f} [{stats['state']}]",
            6000
        )

    def closeEvent(self, event):
        self.graphWidget.setEngine(None)
        super().closeEvent(event)
