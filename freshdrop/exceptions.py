class FreshDropError(Exception):
    status_code = 400

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra


class CampaignNotFound(FreshDropError):
    status_code = 404


class ActiveOrdersError(FreshDropError):
    def __init__(self, count: int):
        super().__init__(
            "Cannot delete account with active orders. "
            "Please complete or cancel all active orders first.",
            activeOrders=count,
        )
        self.count = count


class InvalidStatusTransition(FreshDropError):
    pass


class InvalidApplicant(FreshDropError):
    pass


class RecipientNotFound(FreshDropError):
    pass


class DeliveryError(FreshDropError):
    status_code = 500
