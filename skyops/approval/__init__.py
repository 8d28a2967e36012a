from skyops.approval.gate import ApprovalGate, new_approval_id

__all__ = ["ApprovalGate", "new_approval_id"]
