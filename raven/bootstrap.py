"""Wiring of decoders and routes for the navigation and pilot gateway."""

from __future__ import annotations

from raven.activities import NavigationActivity
from raven.decoders import FixedSizeDecoder, VariableSizeDecoder
from raven.gateway import NetworkGateway
from raven.messages import (
    HaltManualPayload,
    JoystickPayload,
    MsgKind,
    NetMsg,
    StartManualPayload,
)
from raven.services import NavigationService, PilotInputService

JOYSTICK_DECODER = FixedSizeDecoder(MsgKind.PILOT_INPUT, JoystickPayload.SIZE)
START_MANUAL_DECODER = FixedSizeDecoder(MsgKind.NAV_CMD, StartManualPayload.SIZE)
HALT_MANUAL_DECODER = FixedSizeDecoder(MsgKind.NAV_CMD, HaltManualPayload.SIZE)
LLM_RESPONSE_DECODER = VariableSizeDecoder(MsgKind.LLM_DATA, 1, 4096)


def configure_navigation_gateway(
    gateway: NetworkGateway,
    pilot_service: PilotInputService,
    nav_service: NavigationService,
    nav_activity: NavigationActivity,
) -> None:
    """Register the navigation decoders and routes on ``gateway``.

    Joystick input goes to the pilot input service, which writes the navigation
    state; manual-mode start and halt commands go to the navigation activity.
    LLM responses are decoded but not routed anywhere yet.
    """
    gateway.register_decoder(NetMsg.JOYSTICK_INPUT, JOYSTICK_DECODER)
    gateway.register_decoder(NetMsg.START_MANUAL_NAV, START_MANUAL_DECODER)
    gateway.register_decoder(NetMsg.HALT_MANUAL_NAV, HALT_MANUAL_DECODER)
    gateway.register_decoder(NetMsg.LLM_RESPONSE_TEXT, LLM_RESPONSE_DECODER)

    gateway.register_route(NetMsg.JOYSTICK_INPUT, pilot_service)
    gateway.register_route(NetMsg.START_MANUAL_NAV, nav_activity)
    gateway.register_route(NetMsg.HALT_MANUAL_NAV, nav_activity)

    # Reserved for internal-only navigation commands.
    del nav_service