def test_student_message_starts_unreplied(client, student, counselor, student_headers) -> None:
    response = client.post(
        '/messages',
        json={'user_id': student.id, 'counselor_id': counselor.id, 'message': 'Can we talk about internships?'},
        headers=student_headers,
    )

    assert response.status_code == 201
    assert response.json()['message'] == 'Message sent successfully.'

    messages = client.get(
        '/messages',
        params={'user_id': student.id, 'counselor_id': counselor.id},
        headers=student_headers,
    ).json()['messages']
    assert len(messages) == 1
    assert messages[0]['reply'] is None
    assert messages[0]['status'] == 'sent'


def test_second_counselor_reply_overwrites_first(client, student, counselor, student_headers, counselor_headers) -> None:
    client.post(
        '/messages',
        json={'user_id': student.id, 'counselor_id': counselor.id, 'message': 'Hello'},
        headers=student_headers,
    )

    first = client.post('/messages/counselor', json={'user_id': student.id, 'message': 'reply one'}, headers=counselor_headers)
    second = client.post('/messages/counselor', json={'user_id': student.id, 'message': 'reply two'}, headers=counselor_headers)

    assert first.json()['message'] == 'Reply sent successfully.'
    assert first.json()['message_id'] == second.json()['message_id']

    messages = client.get(
        '/messages',
        params={'user_id': student.id, 'counselor_id': counselor.id},
        headers=counselor_headers,
    ).json()['messages']
    assert len(messages) == 1
    assert messages[0]['status'] == 'replied'
    assert messages[0]['reply'] == 'reply two'
    assert messages[0]['replied_at'] is not None


def test_counselor_message_opens_thread_when_empty(client, student, counselor_headers) -> None:
    response = client.post('/messages/counselor', json={'user_id': student.id, 'message': 'Welcome!'}, headers=counselor_headers)

    assert response.status_code == 200
    assert response.json()['message'] == 'Message sent successfully.'


def test_student_cannot_send_as_someone_else(client, student, counselor, student_headers) -> None:
    response = client.post(
        '/messages',
        json={'user_id': student.id + 100, 'counselor_id': counselor.id, 'message': 'Hi'},
        headers=student_headers,
    )

    assert response.status_code == 404


def test_message_to_unknown_counselor_is_not_found(client, student, student_headers) -> None:
    response = client.post(
        '/messages',
        json={'user_id': student.id, 'counselor_id': 999, 'message': 'Hi'},
        headers=student_headers,
    )

    assert response.status_code == 404
    assert response.json() == {'success': False, 'error': 'Counselor not found.'}


def test_blank_message_is_rejected(client, student, counselor, student_headers) -> None:
    response = client.post(
        '/messages',
        json={'user_id': student.id, 'counselor_id': counselor.id, 'message': '   '},
        headers=student_headers,
    )

    assert response.status_code == 400
    assert response.json()['error'] == 'message: Message cannot be empty.'


def test_other_counselor_cannot_read_thread(client, student, counselor, other_counselor_headers) -> None:
    response = client.get(
        '/messages',
        params={'user_id': student.id, 'counselor_id': counselor.id},
        headers=other_counselor_headers,
    )

    assert response.status_code == 404


def test_counselor_reply_requires_counselor_token(client, student, student_headers) -> None:
    response = client.post('/messages/counselor', json={'user_id': student.id, 'message': 'Hi'}, headers=student_headers)

    assert response.status_code == 403


def test_counselor_inbox_lists_messages_from_students(client, student, counselor, student_headers, counselor_headers) -> None:
    client.post(
        '/messages',
        json={'user_id': student.id, 'counselor_id': counselor.id, 'message': 'Can you review my CV?'},
        headers=student_headers,
    )

    response = client.get('/messages/inbox', headers=counselor_headers)

    assert response.status_code == 200
    messages = response.json()['messages']
    assert [(m['user_id'], m['message'], m['student_name'], m['student_email']) for m in messages] == [
        (student.id, 'Can you review my CV?', 'Sam Student', 'student@example.com'),
    ]


def test_inbox_only_shows_own_messages(client, student, counselor, student_headers, other_counselor_headers) -> None:
    client.post(
        '/messages',
        json={'user_id': student.id, 'counselor_id': counselor.id, 'message': 'Hello'},
        headers=student_headers,
    )

    response = client.get('/messages/inbox', headers=other_counselor_headers)

    assert response.status_code == 200
    assert response.json()['messages'] == []


def test_inbox_requires_counselor_token(client, student_headers) -> None:
    response = client.get('/messages/inbox', headers=student_headers)

    assert response.status_code == 403
