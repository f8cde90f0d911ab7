"""HTML pages served to students."""

from __future__ import annotations

from html import escape
import json

from quiz_portal.constants.about import APP_ABOUT_TEXT, APP_NAME
from quiz_portal.constants.quiz_constants import SESSION_POLL_INTERVAL_MS
from quiz_portal.core.markdown_renderer import MATHJAX_SCRIPT
from quiz_portal.core.services.results_presenter import ResultView

_BASE_STYLE = """
      :root { font-family: 'Inter', system-ui, sans-serif; background: #0b1120; color: #f5f7ff; }
      body { margin: 0; padding: 1.5rem; display: flex; flex-direction: column; gap: 1rem; align-items: center; }
      .card { background: #111a30; border-radius: 0.75rem; padding: 1.5rem; box-shadow: 0 0.5rem 1.5rem rgba(0, 0, 0, 0.4); width: 100%; max-width: 48rem; box-sizing: border-box; }
      .hidden { display: none; }
      .muted { color: #94a3b8; }
      .primary-button, .secondary-button { border: none; border-radius: 0.75rem; padding: 0.85rem 1.5rem; font-size: 1rem; color: #fff; cursor: pointer; }
      .primary-button { background: #1f9aa5; }
      .secondary-button { background: #334155; }
      .primary-button:disabled, .secondary-button:disabled { opacity: 0.5; cursor: not-allowed; }
      .details { display: grid; grid-template-columns: auto auto; gap: 0.35rem 1rem; margin: 1rem 0; }
      .options { display: flex; flex-direction: column; gap: 0.75rem; margin-top: 1rem; }
      .option { text-align: left; border: 2px solid #334155; border-radius: 0.75rem; padding: 1rem; background: transparent; color: inherit; font-size: 1rem; cursor: pointer; }
      .option.selected { border-color: #1f9aa5; background: rgba(31, 154, 165, 0.2); }
      .option.committed { border-color: #4ade80; }
      .option:disabled { cursor: default; }
      .nav { display: flex; justify-content: space-between; margin-top: 1.5rem; }
      .progress-track { width: 100%; height: 0.5rem; background: #1e293b; border-radius: 999px; overflow: hidden; }
      #progress-fill { height: 100%; background: #1f9aa5; width: 0; transition: width 300ms ease; }
      #timer-label { font-family: monospace; color: #facc15; }
      .good { color: #4ade80; } .fair { color: #facc15; } .poor { color: #f87171; }
      .review-row { border-top: 1px solid #1e293b; padding: 0.75rem 0; }
"""

_MATHJAX_HEAD = f"""
    <script>
      window.MathJax = {{ tex: {{ inlineMath: [['$','$']], displayMath: [['$$','$$']] }}, svg: {{ fontCache: 'global' }} }};
    </script>
    <script defer src="{MATHJAX_SCRIPT}"></script>"""


def _document(title: str, body: str, head_extra: str = "") -> str:
    return f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{escape(title)}</title>
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <style>{_BASE_STYLE}</style>{head_extra}
  </head>
  <body>
{body}
  </body>
</html>"""


def render_landing_page() -> str:
    body = f"""    <section class="card">
      <h1>{escape(APP_NAME)}</h1>
      <p>{escape(APP_ABOUT_TEXT)}</p>
    </section>"""
    return _document(APP_NAME, body)


def render_not_found_page(title: str, message: str) -> str:
    body = f"""    <section class="card">
      <h1>{escape(title)}</h1>
      <p class="muted">{escape(message)}</p>
      <p><a class="muted" href="/">Back to start</a></p>
    </section>"""
    return _document(title, body)


_QUIZ_SCRIPT = """
      const TOKEN = __TOKEN__;
      const POLL_MS = __POLL_MS__;
      const api = (suffix) => `/api/sessions/${encodeURIComponent(TOKEN)}${suffix}`;
      const el = (id) => document.getElementById(id);
      const cards = ['loading-card', 'start-card', 'question-card', 'completed-card', 'failed-card'];

      let view = null;
      let deadlineMs = null;
      let renderedKey = null;
      let busy = false;

      function show(id) {
        cards.forEach(card => el(card).classList.toggle('hidden', card !== id));
      }

      async function call(method, suffix, body) {
        const response = await fetch(api(suffix), {
          method,
          headers: { 'Content-Type': 'application/json' },
          body: body === undefined ? undefined : JSON.stringify(body)
        });
        const payload = await response.json().catch(() => ({}));
        if (!response.ok) {
          throw new Error(payload.detail || `Request failed (${response.status})`);
        }
        return payload;
      }

      async function act(method, suffix, body) {
        if (busy) return;
        busy = true;
        try {
          apply(await call(method, suffix, body));
        } catch (error) {
          el('status').textContent = error.message;
          await refresh();
        } finally {
          busy = false;
        }
      }

      function renderOptions(container, options, selected, committed, onPick) {
        container.innerHTML = '';
        options.forEach(option => {
          const button = document.createElement('button');
          button.className = 'option';
          if (option.index === selected) button.classList.add('selected');
          if (option.index === committed) button.classList.add('committed');
          button.innerHTML = option.label_html;
          button.addEventListener('click', () => onPick(option.index));
          container.appendChild(button);
        });
      }

      function typeset() {
        if (window.MathJax && window.MathJax.typesetPromise) {
          window.MathJax.typesetPromise([el('question-card')]).catch(() => {});
        }
      }

      function tick() {
        if (deadlineMs === null) return;
        const remaining = Math.max(0, Math.ceil((deadlineMs - Date.now()) / 1000));
        el('timer-label').textContent = `${remaining}s`;
        if (remaining === 0) {
          deadlineMs = null;
          refresh();
        }
      }

      function apply(next) {
        view = next;
        el('status').textContent = '';
        if (view.quiz) {
          document.title = view.quiz.title;
        }
        switch (view.state) {
          case 'NotStarted':
            show('start-card');
            el('quiz-title').textContent = view.quiz.title;
            el('quiz-description').textContent = view.quiz.description;
            el('quiz-topic').textContent = view.quiz.topic;
            el('quiz-count').textContent = view.quiz.question_count;
            el('quiz-seconds').textContent = `${view.quiz.seconds_per_question}s`;
            el('quiz-total').textContent = view.quiz.total_time_label;
            break;
          case 'Active':
            show('question-card');
            renderQuestion();
            break;
          case 'Completed':
          case 'Submitting':
            show('completed-card');
            deadlineMs = null;
            el('completed-count').textContent = view.question_count;
            el('submit-button').disabled = view.state === 'Submitting';
            el('submit-button').textContent = view.state === 'Submitting' ? 'Submitting...' : 'Submit Quiz';
            break;
          case 'Submitted':
            window.location.href = view.results_url;
            break;
          case 'Failed':
            show('failed-card');
            deadlineMs = null;
            el('failure-message').textContent = view.failure.kind === 'token_invalid'
              ? 'This quiz may have expired or the link is invalid.'
              : 'The quiz server could not be reached. You can try again.';
            el('retry-button').classList.toggle('hidden', view.failure.kind === 'token_invalid');
            break;
        }
      }

      function renderQuestion() {
        const question = view.question;
        const review = view.review;
        const shown = review || question;
        el('quiz-heading').textContent = view.quiz.title;
        el('position').textContent = `Question ${shown.position} of ${view.question_count}`;
        el('progress-fill').style.width = `${view.progress_percent}%`;
        if (question.remaining_seconds !== null) {
          deadlineMs = Date.now() + question.remaining_seconds * 1000;
          tick();
        }
        el('review-note').classList.toggle('hidden', !review);
        const key = review ? `review-${review.id}-${review.draft_selection}` : `q-${question.id}-${question.selection}`;
        if (key !== renderedKey) {
          renderedKey = key;
          el('prompt').innerHTML = shown.prompt_html;
          if (review) {
            renderOptions(el('options'), review.options, review.draft_selection, review.committed_index,
              index => act('POST', '/select', { option_index: index }));
          } else {
            renderOptions(el('options'), question.options, question.selection, null,
              index => act('POST', '/select', { option_index: index }));
          }
          typeset();
        }
        const position = review ? review.position - 1 : view.current_index;
        el('prev-button').disabled = position === 0;
        el('next-button').disabled = !review && question.selection === null;
        el('next-button').textContent = review ? 'Next' : (question.is_last ? 'Finish' : 'Next');
      }

      async function refresh() {
        try {
          apply(await call('GET', ''));
        } catch (error) {
          el('status').textContent = error.message;
        }
      }

      el('start-button').addEventListener('click', () => act('POST', '/start'));
      el('submit-button').addEventListener('click', () => {
        el('submit-button').disabled = true;
        act('POST', '/submit');
      });
      el('retry-button').addEventListener('click', () => act('POST', ''));
      el('prev-button').addEventListener('click', () => {
        const position = view.review ? view.review.position - 1 : view.current_index;
        act('POST', '/review', { index: position - 1 });
      });
      el('next-button').addEventListener('click', () => {
        if (view.review) {
          act('POST', '/review', { index: view.review.position });
        } else {
          act('POST', '/next');
        }
      });

      act('POST', '');
      setInterval(tick, 200);
      setInterval(() => { if (!busy && view && ['Active', 'Submitting'].includes(view.state)) refresh(); }, POLL_MS);
"""


def render_quiz_page(token: str) -> str:
    body = """    <section class="card" id="loading-card"><p class="muted">Loading quiz...</p></section>
    <section class="card hidden" id="start-card">
      <h1 id="quiz-title"></h1>
      <p id="quiz-description" class="muted"></p>
      <h3>Quiz Details</h3>
      <div class="details">
        <span class="muted">Topic:</span><span id="quiz-topic"></span>
        <span class="muted">Questions:</span><span id="quiz-count"></span>
        <span class="muted">Time per Question:</span><span id="quiz-seconds"></span>
        <span class="muted">Total Time:</span><span id="quiz-total"></span>
      </div>
      <button id="start-button" class="primary-button">Start Quiz</button>
    </section>
    <section class="card hidden" id="question-card">
      <div class="nav">
        <div><h2 id="quiz-heading"></h2><p id="position" class="muted"></p></div>
        <span id="timer-label"></span>
      </div>
      <div class="progress-track"><div id="progress-fill"></div></div>
      <p id="review-note" class="muted hidden">Reviewing a submitted answer. It can no longer be changed.</p>
      <div id="prompt"></div>
      <div id="options" class="options"></div>
      <div class="nav">
        <button id="prev-button" class="secondary-button">Previous</button>
        <button id="next-button" class="primary-button">Next</button>
      </div>
    </section>
    <section class="card hidden" id="completed-card">
      <h1>Quiz Completed!</h1>
      <p>You have answered all <span id="completed-count"></span> questions.</p>
      <button id="submit-button" class="primary-button">Submit Quiz</button>
    </section>
    <section class="card hidden" id="failed-card">
      <h1>Quiz Not Available</h1>
      <p id="failure-message" class="muted"></p>
      <button id="retry-button" class="secondary-button hidden">Try again</button>
      <p><a class="muted" href="/">Back to start</a></p>
    </section>
    <p id="status" class="muted"></p>
    <script>""" + _QUIZ_SCRIPT.replace("__TOKEN__", json.dumps(token)).replace(
        "__POLL_MS__", str(SESSION_POLL_INTERVAL_MS)
    ) + """    </script>"""
    return _document("Quiz", body, head_extra=_MATHJAX_HEAD)


def render_results_page(result: ResultView) -> str:
    medal = {"gold": "&#127942; ", "silver": "&#129352; "}.get(result.medal or "", "")
    rows = "\n".join(
        f"""        <div class="review-row">
          <p><strong>{index}. {escape(item.question_text)}</strong></p>
          <p class="{'good' if item.is_correct else 'poor'}">{'&#10003;' if item.is_correct else '&#10007;'} Your answer: {escape(item.student_answer)}</p>
          {'' if item.is_correct else f'<p class="muted">Correct answer: {escape(item.correct_answer)}</p>'}
        </div>"""
        for index, item in enumerate(result.review, start=1)
    )
    body = f"""    <section class="card">
      <h1>Quiz Results</h1>
      <p class="muted">Here's how you performed on the quiz</p>
      <h2 class="{result.tone}">{medal}{result.percentage}%</h2>
      <h3>{escape(result.headline)}</h3>
      <p>You scored {result.total_score} out of {result.question_count} questions correctly</p>
      <div class="details">
        <span class="muted">Correct Answers:</span><span>{result.total_score}</span>
        <span class="muted">Incorrect Answers:</span><span>{result.incorrect_count}</span>
        <span class="muted">Your Rank:</span><span>#{result.rank}</span>
      </div>
    </section>
    <section class="card">
      <h2>Answer Review</h2>
{rows}
    </section>
    <p><a class="muted" href="/">Back to start</a></p>"""
    return _document("Quiz Results", body)
