from order_service.domain.entities import OrderLine, ValidatedOrder


def assemble_lines(validated: ValidatedOrder) -> tuple[OrderLine, ...]:
    """Price each validated request line, keeping the request order."""
    return tuple(
        OrderLine(
            product_id=request.product_id,
            quantity=request.requested_quantity,
            unit_price=validated.prices[request.product_id],
        )
        for request in validated.requests
    )
