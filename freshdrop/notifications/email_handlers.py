from freshdrop.utils.template import render_template


def order_update_html(*, subject, message, customer_name, order_number, status):
    return render_template(
        "emails/order_update.html",
        subject=subject,
        message=message,
        customer_name=customer_name,
        order_number=order_number,
        status_label=status.replace("_", " ").upper(),
    )


def order_message_html(*, message, recipient_name, sender_name, order_number):
    return render_template(
        "emails/message.html",
        message=message,
        recipient_name=recipient_name or "there",
        sender_name=sender_name or "Someone",
        order_number=order_number,
    )


def plain_message_html(message, heading=None):
    return render_template(
        "emails/plain_message.html", message=message, heading=heading
    )


def operator_approved_html(*, first_name, email, zip_code):
    return render_template(
        "emails/operator_approved.html",
        first_name=first_name or "there",
        email=email,
        zip_code=zip_code,
    )
