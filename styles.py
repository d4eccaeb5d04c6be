"""
styles.py

Application stylesheets - Light and Dark themes.
"""

LIGHT_STYLE = """
/* === Base Colors === */
QMainWindow {
    background-color: #f1f5f9;
}

QWidget {
    color: #1e293b;
    font-family: "Segoe UI", "SF Pro Display", sans-serif;
    font-size: 13px;
}

/* === Toolbar === */
QToolBar {
    background-color: #ffffff;
    border-bottom: 1px solid #e2e8f0;
    spacing: 6px;
    padding: 4px;
}

QToolButton {
    background-color: transparent;
    border: 1px solid transparent;
    border-radius: 6px;
    padding: 5px 10px;
}

QToolButton:hover {
    background-color: #eff6ff;
    border-color: #bfdbfe;
}

/* === Buttons === */
QPushButton {
    background-color: #3b82f6;
    color: #ffffff;
    border: none;
    border-radius: 6px;
    padding: 7px 16px;
}

QPushButton:hover {
    background-color: #2563eb;
}

QPushButton:disabled {
    background-color: #cbd5e1;
}

/* === Dashboard === */
QListWidget {
    background-color: #ffffff;
    border: 1px solid #e2e8f0;
    border-radius: 8px;
    padding: 6px;
}

QListWidget::item {
    padding: 10px;
    border-bottom: 1px solid #f1f5f9;
}

QListWidget::item:selected {
    background-color: #dbeafe;
    color: #1e293b;
}

QLabel#dashboardTitle {
    font-size: 22px;
    font-weight: bold;
}

QLabel#emptyState {
    color: #6b7280;
}

/* === Status Bar === */
QStatusBar {
    background-color: #ffffff;
    border-top: 1px solid #e2e8f0;
}
"""

DARK_STYLE = """
/* === Base Colors === */
QMainWindow {
    background-color: #1e1e1e;
}

QWidget {
    color: #cccccc;
    font-family: "Segoe UI", "SF Pro Display", sans-serif;
    font-size: 13px;
}

/* === Toolbar === */
QToolBar {
    background-color: #333333;
    border-bottom: 1px solid #404040;
    spacing: 6px;
    padding: 4px;
}

QToolButton {
    background-color: transparent;
    border: 1px solid transparent;
    border-radius: 6px;
    padding: 5px 10px;
    color: #cccccc;
}

QToolButton:hover {
    background-color: #094771;
}

/* === Buttons === */
QPushButton {
    background-color: #0e639c;
    color: #ffffff;
    border: none;
    border-radius: 6px;
    padding: 7px 16px;
}

QPushButton:hover {
    background-color: #1177bb;
}

QPushButton:disabled {
    background-color: #3c3c3c;
    color: #808080;
}

/* === Dashboard === */
QListWidget {
    background-color: #252526;
    border: 1px solid #404040;
    border-radius: 8px;
    padding: 6px;
}

QListWidget::item {
    padding: 10px;
    border-bottom: 1px solid #333333;
}

QListWidget::item:selected {
    background-color: #094771;
    color: #ffffff;
}

QLabel#dashboardTitle {
    font-size: 22px;
    font-weight: bold;
}

QLabel#emptyState {
    color: #808080;
}

/* === Status Bar === */
QStatusBar {
    background-color: #007acc;
    color: #ffffff;
}
"""

STYLES = {
    "Light": LIGHT_STYLE,
    "Dark": DARK_STYLE,
}

DEFAULT_STYLE = "Light"
