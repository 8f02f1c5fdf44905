"""Cart, checkout and the order/payment state machine."""
