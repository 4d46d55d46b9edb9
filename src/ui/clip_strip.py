from PyQt6.QtWidgets import QAbstractItemView, QListView, QListWidget, QListWidgetItem
from PyQt6.QtCore import Qt, pyqtSignal, QSize

from models.clip import ClipWithDuration


class ClipStrip(QListWidget):
    """Horizontal timeline strip; items are reordered by dragging.

    The strip never reorders itself. A drop emits ``clip_moved`` and the
    owner applies the move to the Timeline, which then refreshes the strip.
    """

    clip_moved = pyqtSignal(int, int)  # from index, to index

    PIXELS_PER_SECOND = 12
    MIN_ITEM_WIDTH = 90
    MAX_ITEM_WIDTH = 360
    ITEM_HEIGHT = 56

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setFlow(QListView.Flow.LeftToRight)
        self.setWrapping(False)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAsNeeded)
        self.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.setDragDropMode(QAbstractItemView.DragDropMode.InternalMove)
        self.setDefaultDropAction(Qt.DropAction.MoveAction)
        self.setSpacing(2)
        self.setFixedHeight(self.ITEM_HEIGHT + 28)

    def item_width(self, duration: float) -> int:
        width = int(duration * self.PIXELS_PER_SECOND)
        return max(self.MIN_ITEM_WIDTH, min(width, self.MAX_ITEM_WIDTH))

    def set_clips(self, items: list[ClipWithDuration]):
        """Rebuild the strip, keeping the current row when possible"""
        row = self.currentRow()
        self.clear()
        for entry in items:
            label = entry.clip.name
            if entry.duration > 0:
                label += f"\n{entry.duration:.1f}s"
            item = QListWidgetItem(label)
            item.setToolTip(entry.clip.name)
            item.setData(Qt.ItemDataRole.UserRole, entry.clip.id)
            item.setSizeHint(QSize(self.item_width(entry.duration), self.ITEM_HEIGHT))
            self.addItem(item)
        if 0 <= row < self.count():
            self.setCurrentRow(row)

    def drop_target_row(self, pos) -> int:
        index = self.indexAt(pos)
        if not index.isValid():
            return self.count() - 1
        return index.row()

    def dropEvent(self, event):
        from_index = self.currentRow()
        to_index = self.drop_target_row(event.position().toPoint())

        # Report as copy so the view does not remove the dragged row itself
        event.setDropAction(Qt.DropAction.CopyAction)
        event.accept()

        if from_index >= 0 and to_index >= 0 and from_index != to_index:
            self.clip_moved.emit(from_index, to_index)

    def supportedDropActions(self):
        """Support copy action so accepted drops leave the source row in place"""
        return Qt.DropAction.MoveAction | Qt.DropAction.CopyAction
