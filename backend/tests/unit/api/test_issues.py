"""
Unit Tests for Issues API Endpoints
"""
import pytest
from httpx import AsyncClient

from app.domain.issue_lifecycle import ISSUE_ID_PATTERN


async def report(client: AsyncClient, headers: dict, payload: dict) -> dict:
    response = await client.post('/api/issues', headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()['data']['issue']


class TestReportIssue:
    """Test issue creation"""

    @pytest.mark.asyncio
    async def test_create(self, client: AsyncClient, test_user, auth_headers, issue_data):
        response = await client.post('/api/issues', headers=auth_headers, json=issue_data(tags=[' Bins ', '']))

        assert response.status_code == 201
        assert response.json()['message'] == 'Issue reported successfully'
        issue = response.json()['data']['issue']
        assert issue['status'] == 'new'
        assert ISSUE_ID_PATTERN.match(issue['issueId'])
        assert issue['reporterId'] == test_user.id
        assert issue['communityId'] == test_user.community_id
        assert issue['priority'] == 'medium'
        assert issue['category'] == 'service'
        assert issue['tags'] == ['bins']
        assert issue['resolution'] is None

    @pytest.mark.asyncio
    async def test_ids_are_unique_within_a_day(self, client: AsyncClient, auth_headers, issue_data):
        issues = [await report(client, auth_headers, issue_data()) for _ in range(12)]

        ids = [issue['issueId'] for issue in issues]
        assert len(set(ids)) == len(ids)
        assert all(ISSUE_ID_PATTERN.match(issue_id) for issue_id in ids)
        assert ids[-1].endswith('012')

    @pytest.mark.asyncio
    async def test_short_title(self, client: AsyncClient, auth_headers, issue_data):
        response = await client.post('/api/issues', headers=auth_headers, json=issue_data(title='Bin'))

        assert response.status_code == 400
        assert response.json()['errors'][0]['field'] == 'title'


class TestIssueAccess:
    @pytest.mark.asyncio
    async def test_user_lists_only_own(self, client: AsyncClient, test_user, other_user, headers_for, issue_data):
        mine = await report(client, headers_for(test_user), issue_data())
        await report(client, headers_for(other_user), issue_data())

        response = await client.get('/api/issues', headers=headers_for(test_user))

        assert [i['id'] for i in response.json()['data']['issues']] == [mine['id']]

    @pytest.mark.asyncio
    async def test_other_user_cannot_read(self, client: AsyncClient, test_user, other_user, headers_for, issue_data):
        issue = await report(client, headers_for(test_user), issue_data())

        response = await client.get(f"/api/issues/{issue['id']}", headers=headers_for(other_user))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_community_admin_reads_community_issue(
        self, client: AsyncClient, test_user, community_admin, headers_for, issue_data
    ):
        issue = await report(client, headers_for(test_user), issue_data())

        response = await client.get(f"/api/issues/{issue['id']}", headers=headers_for(community_admin))

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_filters(self, client: AsyncClient, auth_headers, issue_data):
        await report(client, auth_headers, issue_data(type='damaged_bin', priority='high'))
        await report(client, auth_headers, issue_data())

        response = await client.get('/api/issues', headers=auth_headers, params={'type': 'damaged_bin'})

        issues = response.json()['data']['issues']
        assert len(issues) == 1
        assert issues[0]['priority'] == 'high'


class TestUpdateIssue:
    """Reporters edit while new; admins triage"""

    @pytest.mark.asyncio
    async def test_reporter_edits_new_issue(self, client: AsyncClient, auth_headers, issue_data):
        issue = await report(client, auth_headers, issue_data())

        response = await client.put(f"/api/issues/{issue['id']}", headers=auth_headers, json={
            'title': 'Bin still not collected',
            'status': 'closed',
        })

        assert response.status_code == 200
        updated = response.json()['data']['issue']
        assert updated['title'] == 'Bin still not collected'
        assert updated['status'] == 'new'

    @pytest.mark.asyncio
    async def test_reporter_cannot_edit_after_triage(
        self, client: AsyncClient, auth_headers, admin_auth_headers, issue_data
    ):
        issue = await report(client, auth_headers, issue_data())
        url = f"/api/issues/{issue['id']}"
        await client.put(url, headers=admin_auth_headers, json={'status': 'acknowledged'})

        response = await client.put(url, headers=auth_headers, json={'title': 'Changed my mind here'})

        assert response.status_code == 400
        assert response.json()['code'] == 'STATE_CONFLICT'
        current = await client.get(url, headers=auth_headers)
        assert current.json()['data']['issue']['title'] == issue['title']

    @pytest.mark.asyncio
    async def test_admin_status_change_logs_update(
        self, client: AsyncClient, admin_user, auth_headers, admin_auth_headers, issue_data
    ):
        issue = await report(client, auth_headers, issue_data())

        response = await client.put(f"/api/issues/{issue['id']}", headers=admin_auth_headers, json={
            'status': 'in_progress',
            'priority': 'urgent',
            'assignedTo': admin_user.id,
        })

        assert response.status_code == 200
        updated = response.json()['data']['issue']
        assert updated['status'] == 'in_progress'
        assert updated['priority'] == 'urgent'
        assert updated['assignedToId'] == admin_user.id
        assert updated['updates'][0]['statusChange'] == {'from': 'new', 'to': 'in_progress'}

    @pytest.mark.asyncio
    async def test_admin_cannot_reopen(self, client: AsyncClient, auth_headers, admin_auth_headers, issue_data):
        issue = await report(client, auth_headers, issue_data())
        url = f"/api/issues/{issue['id']}"
        await client.put(url, headers=admin_auth_headers, json={'status': 'closed'})

        response = await client.put(url, headers=admin_auth_headers, json={'status': 'new'})

        assert response.status_code == 400
        assert response.json()['code'] == 'INVALID_TRANSITION'

    @pytest.mark.asyncio
    async def test_other_user_cannot_update(
        self, client: AsyncClient, test_user, other_user, headers_for, issue_data
    ):
        issue = await report(client, headers_for(test_user), issue_data())

        response = await client.put(f"/api/issues/{issue['id']}", headers=headers_for(other_user),
                                    json={'title': 'Hijacked title'})

        assert response.status_code == 403


class TestResolveIssue:
    @pytest.mark.asyncio
    async def test_resolve_once(self, client: AsyncClient, test_user, auth_headers, admin_auth_headers, issue_data):
        issue = await report(client, auth_headers, issue_data())
        url = f"/api/issues/{issue['id']}/resolve"

        first = await client.post(url, headers=admin_auth_headers, json={'solution': 're-collected'})
        assert first.status_code == 200
        resolved = first.json()['data']['issue']
        assert resolved['status'] == 'resolved'
        resolved_at = resolved['resolution']['resolvedAt']
        assert resolved_at is not None

        second = await client.post(url, headers=admin_auth_headers, json={'solution': 're-collected'})
        assert second.json()['data']['issue']['resolution']['resolvedAt'] == resolved_at

        notifications = await client.get('/api/notifications', headers=auth_headers)
        titles = [n['title'] for n in notifications.json()['data']['notifications']]
        assert titles == ['Issue Resolved']

    @pytest.mark.asyncio
    async def test_only_admin_resolves(self, client: AsyncClient, auth_headers, issue_data):
        issue = await report(client, auth_headers, issue_data())

        response = await client.post(f"/api/issues/{issue['id']}/resolve", headers=auth_headers,
                                     json={'solution': 'fixed it myself'})

        assert response.status_code == 403


class TestCommentsFeedbackDelete:
    @pytest.mark.asyncio
    async def test_reporter_comment(self, client: AsyncClient, test_user, auth_headers, issue_data):
        issue = await report(client, auth_headers, issue_data())

        response = await client.post(f"/api/issues/{issue['id']}/comments", headers=auth_headers,
                                     json={'comment': 'Still waiting'})

        assert response.status_code == 201
        update = response.json()['data']['update']
        assert update['message'] == 'Still waiting'
        assert update['userId'] == test_user.id
        assert update['statusChange'] is None

    @pytest.mark.asyncio
    async def test_reporter_cannot_change_status_by_comment(self, client: AsyncClient, auth_headers, issue_data):
        issue = await report(client, auth_headers, issue_data())

        response = await client.post(f"/api/issues/{issue['id']}/comments", headers=auth_headers,
                                     json={'message': 'Closing', 'status': 'closed'})

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_internal_comments_hidden_from_reporter(
        self, client: AsyncClient, auth_headers, admin_auth_headers, issue_data
    ):
        issue = await report(client, auth_headers, issue_data())
        url = f"/api/issues/{issue['id']}"
        await client.post(f'{url}/comments', headers=admin_auth_headers,
                          json={'message': 'Driver was sick', 'isInternal': True})
        await client.post(f'{url}/comments', headers=admin_auth_headers, json={'message': 'Rescheduled'})

        as_reporter = await client.get(url, headers=auth_headers)
        as_admin = await client.get(url, headers=admin_auth_headers)

        assert [u['message'] for u in as_reporter.json()['data']['issue']['updates']] == ['Rescheduled']
        assert len(as_admin.json()['data']['issue']['updates']) == 2

    @pytest.mark.asyncio
    async def test_internal_resolving_comment_stays_internal(
        self, client: AsyncClient, auth_headers, admin_auth_headers, issue_data
    ):
        issue = await report(client, auth_headers, issue_data())
        url = f"/api/issues/{issue['id']}"

        response = await client.post(f'{url}/comments', headers=admin_auth_headers, json={
            'message': 'Crew lead confirmed, closing out',
            'status': 'resolved',
            'isInternal': True,
        })
        assert response.status_code == 201
        assert response.json()['data']['update']['isInternal'] is True

        as_reporter = (await client.get(url, headers=auth_headers)).json()['data']['issue']
        assert as_reporter['status'] == 'resolved'
        assert as_reporter['resolution']['solution'] == 'Resolved'
        assert as_reporter['updates'] == []

    @pytest.mark.asyncio
    async def test_feedback_after_resolution(self, client: AsyncClient, auth_headers, admin_auth_headers, issue_data):
        issue = await report(client, auth_headers, issue_data())
        url = f"/api/issues/{issue['id']}"

        early = await client.post(f'{url}/feedback', headers=auth_headers, json={'rating': 5})
        assert early.status_code == 400

        await client.post(f'{url}/resolve', headers=admin_auth_headers, json={'solution': 'done'})
        response = await client.post(f'{url}/feedback', headers=auth_headers, json={'rating': 5, 'satisfied': True})
        assert response.status_code == 200
        assert response.json()['data']['issue']['feedback']['satisfied'] is True

    @pytest.mark.asyncio
    async def test_delete_rules(self, client: AsyncClient, auth_headers, admin_auth_headers, issue_data):
        first = await report(client, auth_headers, issue_data())
        second = await report(client, auth_headers, issue_data())
        await client.put(f"/api/issues/{second['id']}", headers=admin_auth_headers, json={'status': 'acknowledged'})

        own_new = await client.delete(f"/api/issues/{first['id']}", headers=auth_headers)
        own_triaged = await client.delete(f"/api/issues/{second['id']}", headers=auth_headers)
        by_admin = await client.delete(f"/api/issues/{second['id']}", headers=admin_auth_headers)

        assert own_new.status_code == 200
        assert own_triaged.status_code == 400
        assert by_admin.status_code == 200

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient, auth_headers, admin_auth_headers, issue_data):
        issue = await report(client, auth_headers, issue_data())
        await report(client, auth_headers, issue_data(type='damaged_bin'))
        await client.post(f"/api/issues/{issue['id']}/resolve", headers=admin_auth_headers, json={'solution': 'ok'})

        response = await client.get('/api/issues/stats/overview', headers=auth_headers)

        data = response.json()['data']
        assert data['overview']['totalIssues'] == 2
        assert data['overview']['resolvedIssues'] == 1
        assert data['overview']['resolutionRate'] == 50
        assert {entry['type'] for entry in data['byType']} == {'missed_pickup', 'damaged_bin'}
