"""
DynamoDB Credential Store - AWS-native principal storage.
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from brew_auth.ports.store_port import CredentialStorePort
from brew_auth.domain.user import User, Role
from brew_auth.domain.reset import ResetToken
from brew_auth.errors import ConflictError, StoreUnavailableError
from brew_auth.observability import get_logger

logger = get_logger(__name__)

CONDITION_FAILED = "ConditionalCheckFailedException"
EMAIL_MARKER_PREFIX = "email#"


def _to_millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def _condition_failed(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") == CONDITION_FAILED


class DynamoDBCredentialStore(CredentialStorePort):
    """
    DynamoDB-backed credential storage.

    Record mutations are single UpdateItem/PutItem calls with a condition
    expression, so redemption matches and clears the reset record in one
    atomic write. Email markers are claimed before the user write and
    released again if that write fails.
    """

    def __init__(
        self,
        table_name: str = "brew-auth-users",
        region_name: str = "us-east-1",
        table=None,
    ):
        """
        Initialize DynamoDB credential store.

        Args:
            table_name: DynamoDB table name
            region_name: AWS region
            table: Pre-built boto3 Table resource (overrides name/region)

        Table schema:
            - Partition key: user_id (S)
            - GSI: email-index (email as partition key)
            - GSI: reset_secret-index (reset_secret as partition key)
            - Email uniqueness markers live in the same table under
              user_id = "email#<email>"
        """
        if table is None:
            dynamodb = boto3.resource("dynamodb", region_name=region_name)
            table = dynamodb.Table(table_name)
        self._table = table

    def find_by_email(self, email: str) -> Optional[User]:
        try:
            response = self._table.query(
                IndexName="email-index",
                KeyConditionExpression=Key("email").eq(email),
            )
        except (ClientError, BotoCoreError) as e:
            raise StoreUnavailableError(f"dynamodb: {e}")

        for item in response.get("Items", []):
            if not item["user_id"].startswith(EMAIL_MARKER_PREFIX):
                return self._item_to_user(item)
        return None

    def find_by_id(self, user_id: str) -> Optional[User]:
        try:
            response = self._table.get_item(Key={"user_id": user_id}, ConsistentRead=True)
        except (ClientError, BotoCoreError) as e:
            raise StoreUnavailableError(f"dynamodb: {e}")

        if "Item" not in response:
            return None
        return self._item_to_user(response["Item"])

    def create(self, user: User) -> User:
        self._claim_email(user.email, user.user_id)
        try:
            self._table.put_item(Item=self._user_to_item(user))
        except (ClientError, BotoCoreError) as e:
            # Give the address back, or it stays claimed with no user behind it
            self._release_email(user.email, user.user_id)
            raise StoreUnavailableError(f"dynamodb: {e}")
        return user

    def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Optional[User]:
        user = self.find_by_id(user_id)
        if user is None:
            return None

        sets = []
        values: Dict[str, Any] = {}
        names: Dict[str, str] = {}
        if name:
            sets.append("#n = :n")
            values[":n"] = name
            names["#n"] = "name"  # reserved word
        if phone is not None:
            sets.append("phone = :p")
            values[":p"] = phone
        new_email = email if email and email != user.email else None
        if new_email:
            sets.append("email = :e")
            values[":e"] = new_email
        if not sets:
            return user

        update = {
            "Key": {"user_id": user_id},
            "UpdateExpression": "SET " + ", ".join(sets),
            "ConditionExpression": "attribute_exists(user_id)",
            "ExpressionAttributeValues": values,
            "ReturnValues": "ALL_NEW",
        }
        if names:
            update["ExpressionAttributeNames"] = names

        if new_email:
            self._claim_email(new_email, user_id)
        try:
            attributes = self._conditional_update(**update)
        except StoreUnavailableError:
            if new_email:
                self._release_email(new_email, user_id)
            raise

        if attributes is None:
            if new_email:
                self._release_email(new_email, user_id)
            return None
        if new_email:
            self._release_email(user.email, user_id)
        return self._item_to_user(attributes)

    def update_password_hash(self, user_id: str, password_hash: str, changed_at: datetime) -> bool:
        return self._conditional_update(
            Key={"user_id": user_id},
            UpdateExpression="SET password_hash = :h, password_changed_at = :c",
            ConditionExpression="attribute_exists(user_id)",
            ExpressionAttributeValues={":h": password_hash, ":c": changed_at.isoformat()},
        ) is not None

    def update_reset_record(self, user_id: str, token: ResetToken) -> bool:
        return self._conditional_update(
            Key={"user_id": user_id},
            UpdateExpression="SET reset_secret = :s, reset_expires_at = :e",
            ConditionExpression="attribute_exists(user_id)",
            ExpressionAttributeValues={
                ":s": token.secret,
                ":e": _to_millis(token.expires_at),
            },
        ) is not None

    def redeem_reset_record(
        self,
        secret: str,
        password_hash: str,
        now: datetime,
    ) -> Optional[User]:
        if not secret:
            return None

        try:
            response = self._table.query(
                IndexName="reset_secret-index",
                KeyConditionExpression=Key("reset_secret").eq(secret),
            )
        except (ClientError, BotoCoreError) as e:
            raise StoreUnavailableError(f"dynamodb: {e}")

        items = response.get("Items", [])
        if not items:
            return None

        # The index read may be stale; the condition below is the real check.
        attributes = self._conditional_update(
            Key={"user_id": items[0]["user_id"]},
            UpdateExpression=(
                "SET password_hash = :h, password_changed_at = :c "
                "REMOVE reset_secret, reset_expires_at"
            ),
            ConditionExpression="reset_secret = :s AND reset_expires_at > :now",
            ExpressionAttributeValues={
                ":h": password_hash,
                ":c": now.isoformat(),
                ":s": secret,
                ":now": _to_millis(now),
            },
            ReturnValues="ALL_NEW",
        )
        if attributes is None:
            return None
        return self._item_to_user(attributes)

    def clear_reset_record(self, user_id: str) -> bool:
        return self._conditional_update(
            Key={"user_id": user_id},
            UpdateExpression="REMOVE reset_secret, reset_expires_at",
            ConditionExpression="attribute_exists(reset_secret)",
        ) is not None

    def _claim_email(self, email: str, user_id: str) -> None:
        """Write the uniqueness marker for `email`; ConflictError if taken."""
        try:
            self._table.put_item(
                Item={"user_id": f"{EMAIL_MARKER_PREFIX}{email}", "owner_id": user_id},
                ConditionExpression="attribute_not_exists(user_id)",
            )
        except ClientError as e:
            if _condition_failed(e):
                raise ConflictError(f"email already registered: {user_id}")
            raise StoreUnavailableError(f"dynamodb: {e}")
        except BotoCoreError as e:
            raise StoreUnavailableError(f"dynamodb: {e}")

    def _release_email(self, email: str, user_id: str) -> None:
        """Delete the marker for `email` if `user_id` still owns it."""
        try:
            self._table.delete_item(
                Key={"user_id": f"{EMAIL_MARKER_PREFIX}{email}"},
                ConditionExpression="owner_id = :u",
                ExpressionAttributeValues={":u": user_id},
            )
        except ClientError as e:
            if not _condition_failed(e):
                logger.error("email_marker_orphaned", user_id=user_id, error=str(e))
        except BotoCoreError as e:
            logger.error("email_marker_orphaned", user_id=user_id, error=str(e))

    def _conditional_update(self, **kwargs) -> Optional[Dict[str, Any]]:
        """
        Run UpdateItem.

        Returns:
            Returned attributes ({} when none requested), or None if the
            condition failed
        """
        try:
            response = self._table.update_item(**kwargs)
        except ClientError as e:
            if _condition_failed(e):
                return None
            raise StoreUnavailableError(f"dynamodb: {e}")
        except BotoCoreError as e:
            raise StoreUnavailableError(f"dynamodb: {e}")
        return response.get("Attributes", {})

    def _user_to_item(self, user: User) -> Dict[str, Any]:
        """Convert User to DynamoDB item."""
        item = {
            "user_id": user.user_id,
            "email": user.email,
            "name": user.name,
            "password_hash": user.password_hash,
            "role": user.role.value,
            "created_at": user.created_at.isoformat(),
        }
        if user.phone:
            item["phone"] = user.phone
        if user.password_changed_at:
            item["password_changed_at"] = user.password_changed_at.isoformat()
        if user.reset_token:
            item["reset_secret"] = user.reset_token.secret
            item["reset_expires_at"] = _to_millis(user.reset_token.expires_at)
        return item

    def _item_to_user(self, item: Dict[str, Any]) -> User:
        """Convert DynamoDB item to User."""
        reset_token = None
        if item.get("reset_secret"):
            reset_token = ResetToken(
                secret=item["reset_secret"],
                expires_at=datetime.fromtimestamp(
                    int(item["reset_expires_at"]) / 1000, tz=timezone.utc
                ),
            )

        return User(
            user_id=item["user_id"],
            email=item["email"],
            name=item["name"],
            password_hash=item["password_hash"],
            role=Role(item.get("role", "member")),
            phone=item.get("phone"),
            created_at=datetime.fromisoformat(item["created_at"]),
            reset_token=reset_token,
            password_changed_at=(
                datetime.fromisoformat(item["password_changed_at"])
                if item.get("password_changed_at")
                else None
            ),
        )
