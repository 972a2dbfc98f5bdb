from .approvals import ApprovalReport, ApprovalReportRow, ApprovalScanner, format_allowance

__all__ = [
    "ApprovalReport",
    "ApprovalReportRow",
    "ApprovalScanner",
    "format_allowance",
]
