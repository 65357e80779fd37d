import pytest

from documents.models import JobTask, Team
from documents.services.job_runner import JobRunIO, LocalJobRunIO

pytestmark = pytest.mark.django_db


class Counter:
    def __init__(self, result=None):
        self.calls = 0
        self.result = result

    def __call__(self):
        self.calls += 1
        return self.result


def test_step_result_is_stored_and_reused():
    step = Counter({'document_data_id': 12})

    first = JobRunIO('job-1').run_task('get-document-data-id', step)
    second = JobRunIO('job-1').run_task('get-document-data-id', step)

    assert first == second == {'document_data_id': 12}
    assert step.calls == 1
    assert JobTask.objects.get(job_id='job-1', name='get-document-data-id').result == {'document_data_id': 12}


def test_steps_are_scoped_to_their_job():
    step = Counter('PENDING')

    JobRunIO('job-1').run_task('get-document-status', step)
    JobRunIO('job-2').run_task('get-document-status', step)

    assert step.calls == 2


def test_none_is_a_stored_result():
    step = Counter(None)
    io = JobRunIO('job-1')

    io.run_task('send-completed-email', step)
    io.run_task('send-completed-email', step)

    assert io.get_result('send-completed-email') == (True, None)
    assert step.calls == 1


def test_failed_step_is_not_recorded():
    def fail():
        raise ValueError('nope')

    io = JobRunIO('job-1')
    with pytest.raises(ValueError):
        io.run_task('decorate-and-sign-pdf', fail)

    assert io.get_result('decorate-and-sign-pdf') == (False, None)


def test_atomic_step_rolls_back_its_writes():
    def create_then_fail():
        Team.objects.create(name='Half written')
        raise RuntimeError('crash')

    io = JobRunIO('job-1')
    with pytest.raises(RuntimeError):
        io.run_task('update-document', create_then_fail, atomic=True)

    assert not Team.objects.filter(name='Half written').exists()
    assert not JobTask.objects.filter(name='update-document').exists()


def test_atomic_step_commits_result_with_writes():
    def create():
        return Team.objects.create(name='Written').pk

    team_id = JobRunIO('job-1').run_task('update-document', create, atomic=True)

    assert Team.objects.filter(pk=team_id).exists()
    assert JobTask.objects.get(name='update-document').result == team_id


def test_local_runner_keeps_results_in_memory():
    step = Counter(3)
    io = LocalJobRunIO()

    assert io.run_task('step', step) == 3
    assert io.run_task('step', step) == 3
    assert step.calls == 1
    assert not JobTask.objects.exists()


def test_local_runner_atomic_rollback():
    def create_then_fail():
        Team.objects.create(name='Half written')
        raise RuntimeError('crash')

    with pytest.raises(RuntimeError):
        LocalJobRunIO().run_task('update-document', create_then_fail, atomic=True)

    assert not Team.objects.filter(name='Half written').exists()
