"""
Completion command: ALLOCATED → COMPLETED_PAYMENT_ACCEPTED as one conditional
UpdateItem. The SKU counter is not touched; the units stay consumed.
"""
from __future__ import annotations

from shared.allocations import AllocationStatus, TransitionOrderAllocationCommand, build_allocation_status_update


class CompleteOrderPaymentAcceptedCommand(TransitionOrderAllocationCommand):
    target_status = AllocationStatus.COMPLETED_PAYMENT_ACCEPTED


def build_complete_order_allocation_update(command: CompleteOrderPaymentAcceptedCommand, table_name: str) -> dict:
    return build_allocation_status_update(command, table_name)
