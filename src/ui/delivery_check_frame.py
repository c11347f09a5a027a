"""
Delivery Check Frame - Package scan table and delivery transition control.

Renders DeliveryCheckController.state: one row per manifest package with
its scan status, the transition button (label and enabled flag come
straight from the state), and buttons to reset this report's scans, reset
the whole device ledger, and reload.
"""

import customtkinter as ctk
from typing import Optional

from src.ui.delivery_check_controller import DeliveryCheckController, ScreenState
from src.ui.utils.async_runner import AsyncRunner
from src.utils.constants import COLOR_COMPLETE, COLOR_NOT_STARTED


class DeliveryCheckFrame(ctk.CTkFrame):
    """
    Widget displaying a report's scan progress and delivery controls.
    """

    def __init__(
        self,
        parent,
        controller: DeliveryCheckController,
        runner: AsyncRunner,
        **kwargs,
    ):
        """
        Initialize delivery check frame.

        Args:
            parent: Parent widget
            controller: Controller for the report being delivered
            runner: Event loop runner the controller's coroutines run on
        """
        super().__init__(parent, **kwargs)

        self._controller = controller
        self._runner = runner
        self._render_scheduled = False

        self._create_widgets()
        self._layout_widgets()

        # Controller callbacks fire on the loop thread
        self._controller.subscribe(self._schedule_render)
        self._render(self._controller.state)

    def _create_widgets(self) -> None:
        """Create internal widgets."""
        self._header_label = ctk.CTkLabel(
            self,
            text=f"Report {self._controller.report_id}",
            font=ctk.CTkFont(weight="bold", size=16),
            anchor="w",
        )
        self._employee_label = ctk.CTkLabel(
            self,
            text=f"Employee: {self._controller.employee_id or '-'}",
            anchor="w",
        )
        self._count_label = ctk.CTkLabel(self, text="0 of 0 packages scanned", anchor="w")

        self._table_frame = ctk.CTkScrollableFrame(
            self,
            height=260,
            fg_color=("gray95", "gray15"),
        )

        self._error_label = ctk.CTkLabel(self, text="", text_color="#C62828", anchor="w")

        self._button_frame = ctk.CTkFrame(self, fg_color="transparent")
        self._transition_button = ctk.CTkButton(
            self._button_frame,
            text="",
            command=self._on_transition,
        )
        self._reset_button = ctk.CTkButton(
            self._button_frame,
            text="Reset Scans",
            command=self._on_reset,
        )
        self._reset_all_button = ctk.CTkButton(
            self._button_frame,
            text="Reset All",
            command=self._on_reset_all,
        )
        self._refresh_button = ctk.CTkButton(
            self._button_frame,
            text="Refresh",
            command=self._on_refresh,
        )

    def _layout_widgets(self) -> None:
        """Position widgets using grid layout."""
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(3, weight=1)

        self._header_label.grid(row=0, column=0, sticky="ew", padx=10, pady=(10, 0))
        self._employee_label.grid(row=1, column=0, sticky="ew", padx=10)
        self._count_label.grid(row=2, column=0, sticky="ew", padx=10, pady=(5, 5))
        self._table_frame.grid(row=3, column=0, sticky="nsew", padx=10, pady=5)
        self._error_label.grid(row=4, column=0, sticky="ew", padx=10)
        self._button_frame.grid(row=5, column=0, sticky="ew", padx=10, pady=(5, 10))

        self._transition_button.pack(side="left", padx=(0, 5))
        self._reset_button.pack(side="left", padx=5)
        self._reset_all_button.pack(side="left", padx=5)
        self._refresh_button.pack(side="left", padx=5)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _schedule_render(self) -> None:
        if self._render_scheduled:
            return
        self._render_scheduled = True
        self.after(0, self._render_latest)

    def _render_latest(self) -> None:
        self._render_scheduled = False
        self._render(self._controller.state)

    def _render(self, state: ScreenState) -> None:
        self._count_label.configure(
            text=f"{state.scanned_count} of {state.total_count} packages scanned"
        )
        self._transition_button.configure(
            text=state.control_label,
            state="normal" if state.control_enabled else "disabled",
        )
        self._error_label.configure(text=self._controller.last_error or "")
        self._render_rows(state)

    def _render_rows(self, state: ScreenState) -> None:
        for widget in self._table_frame.winfo_children():
            widget.destroy()

        header = ctk.CTkFrame(self._table_frame, fg_color="transparent")
        header.pack(fill="x", padx=5, pady=(2, 4))
        header.grid_columnconfigure(1, weight=1)
        for column, title in enumerate(("ID", "Product", "Status")):
            ctk.CTkLabel(header, text=title, font=ctk.CTkFont(weight="bold"), anchor="w").grid(
                row=0, column=column, sticky="w", padx=5
            )

        if not state.rows:
            ctk.CTkLabel(
                self._table_frame,
                text="No packages to display",
                text_color=("gray60", "gray40"),
            ).pack(pady=10)
            return

        for row in state.rows:
            row_frame = ctk.CTkFrame(self._table_frame, fg_color="transparent")
            row_frame.pack(fill="x", padx=5, pady=1)
            row_frame.grid_columnconfigure(1, weight=1)

            ctk.CTkLabel(row_frame, text=row.package_id, anchor="w").grid(
                row=0, column=0, sticky="w", padx=5
            )
            ctk.CTkLabel(row_frame, text=row.product_name, anchor="w").grid(
                row=0, column=1, sticky="w", padx=5
            )
            ctk.CTkLabel(
                row_frame,
                text=row.status_label,
                text_color=COLOR_COMPLETE if row.scanned else COLOR_NOT_STARTED,
                anchor="w",
            ).grid(row=0, column=2, sticky="w", padx=5)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Load the screen's data."""
        self._runner.submit(self._controller.mount())

    def _on_transition(self) -> None:
        # Reserve on the Tk thread; the button may not have re-rendered yet
        if not self._controller.claim_transition():
            return
        self._transition_button.configure(state="disabled")
        self._runner.submit(self._controller.request_transition(claimed=True))

    def _on_reset(self) -> None:
        self._runner.submit(self._controller.reset_scans())

    def _on_reset_all(self) -> None:
        self._runner.submit(self._controller.reset_all_scans())

    def _on_refresh(self) -> None:
        self._runner.submit(self._controller.mount())


def create_delivery_check_window(
    controller: DeliveryCheckController,
    runner: AsyncRunner,
    title: Optional[str] = None,
) -> ctk.CTk:
    """
    Build the top-level window hosting a DeliveryCheckFrame.

    Returns:
        The CTk root window (call mainloop() on it)
    """
    from src.utils.constants import APP_NAME, DEFAULT_WINDOW_HEIGHT, DEFAULT_WINDOW_WIDTH

    window = ctk.CTk()
    window.title(title or f"{APP_NAME} - Report {controller.report_id}")
    window.geometry(f"{DEFAULT_WINDOW_WIDTH}x{DEFAULT_WINDOW_HEIGHT}")

    frame = DeliveryCheckFrame(window, controller, runner)
    frame.pack(fill="both", expand=True)
    frame.load()
    return window
