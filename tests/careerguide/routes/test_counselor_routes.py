from careerguide.services.directory import SPECIALIZATIONS


def test_list_counselors_returns_full_directory(client, counselor, other_counselor) -> None:
    response = client.get('/counselors')

    body = response.json()
    assert response.status_code == 200
    assert body['success'] is True
    assert [c['name'] for c in body['counselors']] == ['Casey Counselor', 'Morgan Mentor']
    assert 'hashed_password' not in body['counselors'][0]


def test_list_counselors_renders_availability_labels(client, counselor) -> None:
    entry = client.get('/counselors').json()['counselors'][0]

    assert entry['availability'][0] == {'day': 'Monday', 'start': '09:00', 'end': '12:00'}
    assert entry['availability_labels'] == ['Mon 09:00-12:00', 'Wed 13:00-17:00']


def test_get_counselor_by_id(client, counselor) -> None:
    response = client.get(f'/counselors/{counselor.id}')

    assert response.status_code == 200
    assert response.json()['counselor']['email'] == counselor.email


def test_get_unknown_counselor_is_not_found(client) -> None:
    response = client.get('/counselors/4040')

    assert response.status_code == 404
    assert response.json() == {'success': False, 'error': 'Counselor not found.'}


def test_list_specializations(client) -> None:
    assert client.get('/counselors/specializations').json()['specializations'] == list(SPECIALIZATIONS)
