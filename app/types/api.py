from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SendEmailResponse(BaseModel):
    """Response for the mail-sending endpoints once dispatch was attempted.

    Attributes:
        success: True only when both the business notification and the client
            confirmation were handed to the transport.
        message: Human-readable summary for the form UI.
        error_ids: Opaque ids of the failed legs, for support correlation.
            Omitted on full success.

    Examples:
        Full success:
            {"success": true, "message": "Emails sent successfully"}

        Partial failure:
            {"success": false, "message": "...", "errorIds": ["3f9c2a1b7d4e"]}
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    error_ids: Optional[List[str]] = Field(default=None, alias="errorIds")


class ErrorResponse(BaseModel):
    """Body of every non-200 response."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    error: str
    details: Optional[List[Dict[str, Any]]] = None
    error_id: Optional[str] = Field(default=None, alias="errorId")


class EmailJsTemplateConfig(BaseModel):
    """Public identifiers a browser needs to send one EmailJS template."""

    model_config = ConfigDict(populate_by_name=True)

    service_id: Optional[str] = Field(default=None, alias="serviceId")
    template_id: Optional[str] = Field(default=None, alias="templateId")
    public_key: Optional[str] = Field(default=None, alias="publicKey")
    default_reply_to: Optional[str] = Field(default=None, alias="defaultReplyTo")
    template_params: Optional[Dict[str, Any]] = Field(default=None, alias="templateParams")


class EmailJsConfigResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    service_provider: EmailJsTemplateConfig = Field(alias="serviceProvider")
    client: EmailJsTemplateConfig


class PrepareEmailResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    email_configs: EmailJsConfigResponse = Field(alias="emailConfigs")


class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str = "ok"
    transport: Optional[str] = None
    transport_ready: Optional[bool] = Field(default=None, alias="transportReady")
