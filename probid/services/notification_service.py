# probid/services/notification_service.py
# 寄送 Email 通知 (盡力而為)：交易 commit 後才排入 BackgroundTasks，
# 失敗只寫 log，不影響原本的請求，也不重試。
import logging
from dataclasses import dataclass
from typing import Optional

import boto3
from fastapi import BackgroundTasks, Depends

from probid.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailNotice:
    event: str
    to: str
    subject: str
    text: str
    html: str


class NotificationService:
    def __init__(self, settings: Settings, background_tasks: Optional[BackgroundTasks] = None):
        self.settings = settings
        self.background_tasks = background_tasks

    def emit(self, notice: EmailNotice) -> None:
        """
        排入背景工作；沒有 BackgroundTasks 時 (例如 script 中呼叫) 直接寄送
        """
        if not notice.to:
            logger.info(f"Skip notification {notice.event}: recipient has no email")
            return
        if self.background_tasks is not None:
            self.background_tasks.add_task(self.deliver, notice)
        else:
            self.deliver(notice)

    def deliver(self, notice: EmailNotice) -> None:
        try:
            if self.settings.is_development or not self.settings.EMAIL_FROM:
                logger.info(
                    f"Email would be sent in production: event={notice.event}, "
                    f"to={notice.to}, subject={notice.subject!r}"
                )
                return
            self._send(notice)
            logger.info(f"Email sent: event={notice.event}, to={notice.to}")
        except Exception as e:
            logger.error(f"Error sending email ({notice.event} to {notice.to}): {e}", exc_info=True)

    def _sesv2_client(self):
        return boto3.client("sesv2", region_name=self.settings.AWS_REGION)

    def _send(self, notice: EmailNotice) -> None:
        resp = self._sesv2_client().send_email(
            FromEmailAddress=f"ProBid <{self.settings.EMAIL_FROM}>",
            Destination={"ToAddresses": [notice.to]},
            Content={
                "Simple": {
                    "Subject": {"Data": notice.subject[:200]},
                    "Body": {
                        "Text": {"Data": notice.text},
                        "Html": {"Data": notice.html},
                    },
                }
            },
        )
        logger.debug(f"SES message id: {(resp or {}).get('MessageId')}")

    # --- 業務事件 ---

    def bid_created(self, buyer_email: str, project_title: str, amount: float, delivery_time: int) -> None:
        """通知買方：案件收到新出價"""
        self.emit(EmailNotice(
            event="bid_created",
            to=buyer_email,
            subject=f'New bid on your project "{project_title}"',
            text=f'A new bid has been placed on your project "{project_title}". Check it out!',
            html=(
                "<h2>New Bid Received</h2>"
                f'<p>A new bid has been placed on your project "{project_title}".</p>'
                f"<p>Bid Amount: ${amount}</p>"
                f"<p>Delivery Time: {delivery_time} days</p>"
                "<p>Log in to your account to review the bid details.</p>"
            ),
        ))

    def bid_accepted(self, seller_email: str, project_title: str) -> None:
        """通知賣方：出價被接受"""
        self.emit(EmailNotice(
            event="bid_accepted",
            to=seller_email,
            subject=f'Your bid for "{project_title}" has been accepted!',
            text=(
                f'Congratulations! Your bid for the project "{project_title}" has been accepted. '
                "You can now start working on the project."
            ),
            html=(
                "<h2>Congratulations!</h2>"
                f'<p>Your bid for the project "{project_title}" has been accepted.</p>'
                "<p>You can now start working on the project.</p>"
            ),
        ))

    def project_completed(self, seller_email: str, project_title: str) -> None:
        """通知賣方：案件已被買方標記完成"""
        self.emit(EmailNotice(
            event="project_completed",
            to=seller_email,
            subject=f'Project "{project_title}" has been marked as completed',
            text=(
                f'The project "{project_title}" has been marked as completed by the client. '
                "Thank you for your work!"
            ),
            html=(
                "<h2>Project Completed</h2>"
                f'<p>The project "{project_title}" has been marked as completed by the client.</p>'
                "<p>Thank you for your work!</p>"
            ),
        ))


def get_notification_service(
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
) -> NotificationService:
    """FastAPI Dependency：每個請求一個通知服務，綁定該請求的 BackgroundTasks"""
    return NotificationService(settings, background_tasks)
