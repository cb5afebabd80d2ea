# graphwidget.py

from PyQt5.QtWidgets import QGraphicsView, QGraphicsScene, QMenu
from PyQt5.QtCore import Qt, QLineF, QRectF, QTimer, pyqtSignal
from PyQt5.QtGui import QPen, QColor, QPainter, QBrush
from PyQt5.QtWidgets import QGraphicsScene as QGS
from typing import Optional
from engine import LayoutEngine
from simulation import SolverState
from utils_geom import v_sub
import logging

logger = logging.getLogger(__name__)

# Zoom behavior constants
ZOOM_FACTOR = 1.15
ZOOM_MAX = 50.0
ZOOM_MIN = 0.05

# Default tick cadence (~60 FPS); overridden by ViewerConfig.tick_interval_ms
ANIM_DT_MS = 16


class GraphWidget(QGraphicsView):
    alphaChanged = pyqtSignal(float)
    settled = pyqtSignal()
    layoutReset = pyqtSignal()

    def __init__(self, parent=None, tick_interval_ms: int = ANIM_DT_MS):
        super().__init__(parent)
        self.engine: Optional[LayoutEngine] = None
        scene = QGraphicsScene(self)
        scene.setItemIndexMethod(QGS.NoIndex)
        self.setScene(scene)

        self.setRenderHint(QPainter.Antialiasing)
        self.setDragMode(QGraphicsView.NoDrag)
        self.setTransformationAnchor(QGraphicsView.AnchorUnderMouse)
        self.setViewportUpdateMode(QGraphicsView.SmartViewportUpdate)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarAlwaysOff)

        self.background = QColor(255, 255, 255)
        self._node_items = {}
        self._edge_items = []
        self._dragging = None
        self.panning = False
        self.lastPanPoint = None

        # The host scheduler for the solver: one step per timeout
        self._timer = QTimer(self)
        self._timer.setInterval(int(tick_interval_ms))
        self._timer.timeout.connect(self._onTick)

    # --------------------------
    # Engine lifecycle
    # --------------------------
    def setEngine(self, engine: Optional[LayoutEngine]):
        self._timer.stop()
        if self.engine is not None and self.engine is not engine:
            self.engine.dispose()
        self.engine = engine
        self._dragging = None
        self.buildScene()
        if engine is not None:
            engine.on_viewport_resize(*self._viewportSize())
            self.ensureRunning()

    def _viewportSize(self):
        vp = self.viewport()
        return max(1, vp.width()), max(1, vp.height())

    def ensureRunning(self):
        if self.engine is not None and self.engine.state is SolverState.RUNNING and not self._timer.isActive():
            self._timer.start()

    def stop(self):
        self._timer.stop()

    def _onTick(self):
        if self.engine is None:
            self._timer.stop()
            return
        event = self.engine.step()
        if event is None:
            self._timer.stop()
            return
        self.syncPositions()
        self.alphaChanged.emit(event.alpha)
        if event.settled:
            self._timer.stop()
            self.settled.emit()

    # --------------------------
    # Scene
    # --------------------------
    def drawBackground(self, painter, rect):
        painter.fillRect(rect, self.background)

    def buildScene(self):
        self.scene().clear()
        self._node_items = {}
        self._edge_items = []
        if self.engine is None:
            return
        data = self.engine.data
        for edge in data.edges:
            item = self.scene().addLine(0, 0, 0, 0)
            item.setZValue(-10)
            self._edge_items.append((edge, item))
        for node in data.nodes:
            item = self.scene().addEllipse(0, 0, 1, 1)
            item.setBrush(QBrush(self.engine.node_colors.qcolor_for(node)))
            item.setToolTip(str(node.getId()))
            item.setZValue(10)
            self._node_items[node.getId()] = (node, item)
        w, h = self._viewportSize()
        self.scene().setSceneRect(QRectF(0, 0, w, h))
        self.applyStyle()
        self.syncPositions()

    def applyStyle(self):
        """Radius, stroke and link appearance follow the force parameters."""
        if self.engine is None:
            return
        style = self.engine.display_style()
        self._radius = style.node_radius
        node_pen = QPen(QColor(style.node_stroke))
        node_pen.setWidthF(style.node_stroke_width)
        if style.node_stroke_width <= 0:
            node_pen = QPen(Qt.NoPen)
        for node, item in self._node_items.values():
            item.setPen(node_pen)
        for edge, item in self._edge_items:
            pen = QPen(self.engine.link_colors.qcolor_for(edge))
            pen.setWidthF(style.link_width)
            pen.setCosmetic(True)
            item.setPen(pen)
            item.setOpacity(style.link_opacity)
        self.syncPositions()

    def syncPositions(self):
        r = getattr(self, "_radius", 5.0)
        for node, item in self._node_items.values():
            if not node.hasPosition():
                continue
            p = node.getPosition()
            item.setRect(p.x() - r, p.y() - r, 2 * r, 2 * r)
            item.setVisible(node.isVisible())
        for edge, item in self._edge_items:
            s, t = edge.getSource(), edge.getTarget()
            if not (s.hasPosition() and t.hasPosition()):
                continue
            item.setLine(QLineF(s.getPosition(), t.getPosition()))
            item.setVisible(edge.isVisible())
        self.viewport().update()

    def refreshVisibility(self):
        for node, item in self._node_items.values():
            item.setVisible(node.isVisible())
        for edge, item in self._edge_items:
            item.setVisible(edge.isVisible())

    # --------------------------
    # Commands from the controls dock
    # --------------------------
    def setFilter(self, attribute: str, value):
        if self.engine is None:
            return None
        update = self.engine.on_filter_change(attribute, value)
        self.refreshVisibility()
        return update

    def setForceParameter(self, force: str, name: str, value):
        if self.engine is None:
            return
        self.engine.on_parameter_change(force, name, value)
        self.applyStyle()
        self.ensureRunning()

    def resetLayout(self):
        if self.engine is None:
            return
        self.engine.reset()
        self.refreshVisibility()
        self.syncPositions()
        self.ensureRunning()
        self.layoutReset.emit()

    def centerGraph(self):
        self.resetTransform()
        w, h = self._viewportSize()
        self.centerOn(w / 2.0, h / 2.0)

    def zoomIn(self):
        if self.transform().m11() * ZOOM_FACTOR <= ZOOM_MAX:
            self.scale(ZOOM_FACTOR, ZOOM_FACTOR)

    def zoomOut(self):
        if self.transform().m11() / ZOOM_FACTOR >= ZOOM_MIN:
            self.scale(1.0 / ZOOM_FACTOR, 1.0 / ZOOM_FACTOR)

    # --------------------------
    # Qt events
    # --------------------------
    def resizeEvent(self, event):
        super().resizeEvent(event)
        if self.engine is None:
            return
        w, h = self._viewportSize()
        self.scene().setSceneRect(QRectF(0, 0, w, h))
        self.engine.on_viewport_resize(w, h)
        self.ensureRunning()

    def wheelEvent(self, event):
        if event.angleDelta().y() > 0:
            self.zoomIn()
        else:
            self.zoomOut()
        event.accept()

    def mousePressEvent(self, event):
        if event.button() != Qt.LeftButton or self.engine is None:
            super().mousePressEvent(event)
            return
        p = self.mapToScene(event.pos())
        node = self.engine.node_at(p.x(), p.y())
        if node is not None:
            self._dragging = node.getId()
            self.engine.on_drag_start(self._dragging)
            self.ensureRunning()
            self.setCursor(Qt.ClosedHandCursor)
        else:
            self.panning = True
            self.lastPanPoint = event.pos()
        event.accept()

    def mouseMoveEvent(self, event):
        if self._dragging is not None:
            p = self.mapToScene(event.pos())
            self.engine.on_drag_move(self._dragging, p.x(), p.y())
        elif self.panning:
            delta = v_sub(self.mapToScene(self.lastPanPoint), self.mapToScene(event.pos()))
            self.lastPanPoint = event.pos()
            self.translate(delta.x(), delta.y())
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.LeftButton:
            if self._dragging is not None:
                self.engine.on_drag_end(self._dragging)
                self._dragging = None
            self.panning = False
            self.setCursor(Qt.ArrowCursor)
        super().mouseReleaseEvent(event)

    def contextMenuEvent(self, event):
        menu = QMenu(self)
        menu.addAction("Reset Layout (R)", self.resetLayout)
        menu.addAction("Center Graph (C)", self.centerGraph)
        menu.addAction("Zoom In (+)", self.zoomIn)
        menu.addAction("Zoom Out (-)", self.zoomOut)
        menu.exec_(event.globalPos())
