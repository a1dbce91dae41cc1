from fastapi import Request

from starcard.services.card_controller import CardController


def get_controller(request: Request) -> CardController:
    """
    Dependency that provides the session's controller.

    The app serves a single user, so one controller built at startup holds
    all view and draft state.
    """
    controller: CardController = request.app.state.controller
    return controller
