"""The browser loader runtime shipped ahead of every bundle.

It exposes ``define``, ``require`` and ``execute`` on the global object.
``define`` only records payloads; ``require`` instantiates them on first use;
``execute`` queues ``{module, fn, args}`` calls that are retried on every
zero-delay flush until their module has been defined, so inline calls survive
an asynchronously loaded bundle arriving late.
"""

from __future__ import annotations

from .modules import ScriptModule

PRELUDE_NAME = "prelude"

PRELUDE = """
(function(exports) {
  var _payloads = {},
      _modules = {},
      _execute = [],
      _schedule = null;

  function key(name) {
    return '_n_' + name;
  }

  function available(name) {
    var k = key(name);
    return k in _modules || k in _payloads;
  }

  function run() {
    var current = _execute;
    _execute = [];
    for (var i = 0, l = current.length; i < l; i++) {
      var c = current[i];
      if (available(c.module)) {
        var m = require(c.module);
        m[c.fn].apply(m, c.args || []);
      } else {
        execute(c);
      }
    }
  }

  function schedule() {
    if (_schedule) {
      return;
    }
    _schedule = setTimeout(function() {
      _schedule = null;
      run();
    }, 0);
  }

  function execute(c) {
    _execute.push(c);
    schedule();
  }

  function require(name) {
    var k = key(name),
        m = _modules[k];

    if (m) {
      return m.exports;
    }
    if (!(k in _payloads)) {
      throw new Error('module ' + name + ' not found');
    }
    var fn = new Function('require', 'exports', 'module', _payloads[k]);
    delete _payloads[k];
    _modules[k] = m = { name: name, exports: {} };
    fn.call(exports, require, m.exports, m);
    return m.exports;
  }

  function define(name, payload) {
    var k = key(name);
    if (k in _payloads || k in _modules) {
      throw new Error('module ' + name + ' already defined');
    }
    _payloads[k] = payload;
    schedule();
  }

  exports.define = define;
  exports.require = require;
  exports.execute = execute;
})(this);
"""


def prelude_module() -> ScriptModule:
    """Return the loader runtime as a module so it can be transformed like one."""

    return ScriptModule(PRELUDE_NAME, PRELUDE)


__all__ = ["PRELUDE", "PRELUDE_NAME", "prelude_module"]
