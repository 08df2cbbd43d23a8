EVENT_REMINDER_SUBJECT = "Reminder: {title}"

EVENT_REMINDER_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Event Reminder</title>
</head>
<body style="font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; line-height: 1.6; color: #333; background-color: #f4f4f4; margin: 0; padding: 0;">
    <table width="100%" cellpadding="0" cellspacing="0" style="background-color: #f4f4f4; padding: 20px;">
        <tr>
            <td align="center">
                <table width="600" cellpadding="0" cellspacing="0" style="background-color: #ffffff; border-radius: 8px;">
                    <tr>
                        <td style="background-color: #2563eb; padding: 24px; text-align: center; border-radius: 8px 8px 0 0;">
                            <h1 style="color: #ffffff; margin: 0; font-size: 24px;">Upcoming Event</h1>
                        </td>
                    </tr>
                    <tr>
                        <td style="padding: 32px 30px;">
                            <p style="font-size: 16px; margin-bottom: 20px;">
                                {% if user_name %}Hello {{ user_name }},{% else %}Hello,{% endif %}
                            </p>
                            <p style="font-size: 16px; margin-bottom: 24px;">
                                <strong>{{ title }}</strong> starts in {{ minutes_before }} minutes.
                            </p>
                            <table width="100%" style="background-color: #f8f9fa; border-radius: 6px; padding: 16px;">
                                <tr>
                                    <td style="padding: 8px;">
                                        <strong style="display: block; color: #666; font-size: 14px;">Starts</strong>
                                        <span style="font-size: 18px;">{{ start_time }}</span>
                                    </td>
                                </tr>
                            </table>
                        </td>
                    </tr>
                    <tr>
                        <td style="padding: 16px 30px; font-size: 12px; color: #666; border-top: 1px solid #ddd;">
                            You receive this reminder because the event is synced from your Google Calendar.
                        </td>
                    </tr>
                </table>
            </td>
        </tr>
    </table>
</body>
</html>
"""
